"""Offline receipt and statement scanner.

Turns an uploaded receipt photo or bill PDF into a pre-filled expense:
native PDF text or Tesseract OCR, heuristic extraction of amount, date,
merchant, address and account number, content-hash duplicate detection,
and merchant and category resolution against the user's history.
"""
