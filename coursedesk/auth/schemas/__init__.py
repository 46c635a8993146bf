"""Auth Schemas Package"""
