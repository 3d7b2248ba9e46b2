"""Security: error kinds and authentication components"""
