"""
Application settings (admin-only): a single row holding branding, currency
and the data entry operator payout rates.
"""
