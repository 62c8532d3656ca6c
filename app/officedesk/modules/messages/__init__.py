"""Internal one-to-one messaging between active users."""
