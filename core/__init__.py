"""
Image captioning core: encoding, batch orchestration and the
synchronous fallback path.
"""
