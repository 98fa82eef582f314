"""Пакет сервисов бизнес-логики.

    from spree_uploader.services import (
        FeedNormalizer,
        SpreeAdminDriver,
        UploadService,
        ReportService,
    )
"""

from spree_uploader.services.admin_service import SpreeAdminDriver
from spree_uploader.services.browser_service import BrowserService
from spree_uploader.services.driver import (
    DuplicateSkuError,
    LoginError,
    NavigationError,
    SubmissionDriver,
    SubmissionError,
)
from spree_uploader.services.feed_service import (
    EmptyFeedError,
    FeedError,
    FeedIssue,
    FeedIssueKind,
    FeedNormalizer,
    FeedUnavailableError,
    MalformedRecordError,
    NormalizationResult,
    load_feed,
)
from spree_uploader.services.media_service import MediaService
from spree_uploader.services.pricing import MarkupPricingPolicy, PricingPolicy
from spree_uploader.services.report_service import ReportService
from spree_uploader.services.taxonomy import (
    match_taxon,
    match_taxon_index,
    select_taxon_keywords,
)
from spree_uploader.services.upload_service import UploadService, UploadSummary

__all__ = [
    "BrowserService",
    "DuplicateSkuError",
    "EmptyFeedError",
    "FeedError",
    "FeedIssue",
    "FeedIssueKind",
    "FeedNormalizer",
    "FeedUnavailableError",
    "LoginError",
    "MalformedRecordError",
    "MarkupPricingPolicy",
    "MediaService",
    "NavigationError",
    "NormalizationResult",
    "PricingPolicy",
    "ReportService",
    "SpreeAdminDriver",
    "SubmissionDriver",
    "SubmissionError",
    "UploadService",
    "UploadSummary",
    "load_feed",
    "match_taxon",
    "match_taxon_index",
    "select_taxon_keywords",
]
