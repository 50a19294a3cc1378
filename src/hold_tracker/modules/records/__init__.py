"""
On-Hold Records Module

Tracks students whose enrolment is on hold until someone follows up.

API Endpoints:
- GET/POST /records
- GET /records/analytics
- GET/PUT/DELETE /records/{record_id}
- PUT /records/{record_id}/reminders

Security Features:
- Contact details and notes encrypted at rest (AES-256-GCM)
- Keyed hashes of contact email/phone for lookup without decryption
- Unique index on record_id (duplicates rejected even under concurrency)
- No sensitive field values in logs or audit entries
"""

from .router import router

__all__ = ["router"]
