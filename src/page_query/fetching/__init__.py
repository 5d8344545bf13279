"""HTTP text fetching.

- ``text_fetcher`` — single timed GET returning the response body
"""
