"""Blocking HTTP clients for the widget data sources.

Each client takes a ``requests.Session`` and a timeout and returns plain
dataclasses. Network and HTTP errors surface as ``requests.RequestException``;
malformed responses raise ``ValueError``.
"""
