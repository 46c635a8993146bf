"""Reports Schemas Package"""
