"""Core domain package for sponsormatch.

Core contains filtering, the match lifecycle and swipe interpretation
without any store- or UI-specific code, keeping the business logic portable.
"""
