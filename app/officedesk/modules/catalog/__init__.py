"""
Categories and subcategories (admin-managed). A subcategory carries the fare
that pre-fills a task's fee.
"""
