"""
KYC Verification Flow

This package contains the client-side identity verification flow:
- Local image size gate before any upload
- Document submission (OCR fields, quality flags, mismatches)
- Face verification (document photo vs selfie)
- Session state machine driving Document -> Face -> Done
"""

__version__ = "1.0.0"
