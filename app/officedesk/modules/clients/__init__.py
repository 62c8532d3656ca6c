"""
Unified client directory shared by every role; add/edit for admin, manager,
assistant and data entry operators, delete for admin only.
"""
