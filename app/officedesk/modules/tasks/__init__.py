"""
Work assignments ("tasks").

- Admin assigns, edits and deletes any task.
- Staff submit their own work entries and update status/notes on their tasks.
- Managers and accountants may also change payment status.
- Bills are printable by admin, manager, accountant or the assignee.
"""
