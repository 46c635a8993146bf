"""Course Desk: admissions, enrollments and fee tracking API"""
