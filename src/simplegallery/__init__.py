"""
simplegallery - Browsable photo/video gallery served over HTTP

A small web application for browsing a directory tree of photos with features including:
- Directory listings rendered as HTML
- Full-size file delivery
- On-demand generation and caching of resized previews
- Optional per-user access control with HTTP Basic authentication
"""

__version__ = "0.1.0"
__author__ = "simplegallery"
__description__ = "Browsable photo/video gallery with on-demand previews"
