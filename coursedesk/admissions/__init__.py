"""Inquiries and enrollments"""
