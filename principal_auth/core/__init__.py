"""Core: constants, configuration and the AuthService facade"""
