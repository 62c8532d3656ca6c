"""
Data entry operator earnings and payouts.

Earnings accrue per approved recruitment post; operators request withdrawals
of their available balance and an admin moves each request through
pending -> processing/details_requested -> paid/rejected.
"""
