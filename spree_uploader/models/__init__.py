"""Пакет доменных моделей.

    from spree_uploader.models import NormalizedProduct, TaxonPath, UploadResult
"""

from spree_uploader.models.product import NormalizedProduct, Specification, TaxonPath
from spree_uploader.models.upload import (
    SubmissionOutcome,
    SubmissionStatus,
    UploadResult,
)

__all__ = [
    "NormalizedProduct",
    "Specification",
    "SubmissionOutcome",
    "SubmissionStatus",
    "TaxonPath",
    "UploadResult",
]
