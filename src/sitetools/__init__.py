"""Transformations the site tasks pipe files through.

Each module wraps one concern (templates, component index, URLs, XML to JSON,
stylesheets, scripts) so tasks in `sitetasks` stay short.
"""
