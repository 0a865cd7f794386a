"""
Services Layer

Pure pairing logic plus the tournament round service:
- Pairing modules take participant ids and return Pairing values, no I/O
- tournament_service takes a Session and records matches
- Nothing here depends on HTTP request/response objects
"""
