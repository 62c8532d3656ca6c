"""
Recruitment posts.

Data entry operators submit job postings; an admin approves, rejects or
returns them for edit. Each approved post earns the operator the configured
per-post amount (see the withdrawals module).
"""
