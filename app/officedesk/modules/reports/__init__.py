"""
Dashboards, period reports and CSV exports.

Revenue is fee minus maintenance fee on completed tasks, bucketed by
completion time; expenses are bucketed by expense date.
"""
