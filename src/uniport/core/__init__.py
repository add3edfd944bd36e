"""Core business logic.

Modules:
- grading: five-point grading scale and semester keys
- gpa: GPA/CGPA arithmetic and class of degree
- results: results views, transcript and academic progress
- registration: catalog course registration rules
- student_courses: self-managed student course list
- cbt: computer-based testing practice sessions
- auth: accounts, passwords and bearer tokens
- admin: admin/lecturer portal (students, courses, grading, question bank)
"""
