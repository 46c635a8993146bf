"""Dashboard stats, CSV exports and payment reminders"""
