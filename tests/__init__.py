"""
Test suite for simplegallery.

This module contains all test cases for the application:
- Unit tests for services, models and helpers
- Integration tests driving the HTTP application
"""
