"""
Record Acquisition Module for Vacancy Radar.

This module provides the record models consumed by the scoring engine,
async clients for the DVF (property sales) and DPE (energy diagnostics)
open-data registries, synthetic fallback data, and the census reference
zones.

Primary Usage:
    from vacancy_radar.acquisition import TargetArea, dvf_source, dpe_source, load_all

    area = TargetArea()
    transactions, diagnostics = await load_all(dvf_source(area), dpe_source(area))
    zones = load_census_zones()
"""

from .census import BOUFFAY_IRIS_ZONES, load_census_zones, parse_census_zones
from .dpe_client import DPEClient
from .dvf_client import DVFClient
from .exceptions import (
    AcquisitionError,
    AuthenticationError,
    ConnectionError,
    InvalidResponseError,
    MaxRetriesExceededError,
    NotFoundError,
    RateLimitError,
    ServerError,
    TimeoutError,
)
from .models import (
    DPE_CONFIG,
    DVF_CONFIG,
    APIClientConfig,
    BoundingBox,
    ConnectionLimits,
    RateLimitConfig,
    RetryConfig,
    TargetArea,
    TimeoutConfig,
)
from .records import (
    ENERGY_CLASSES,
    FAILING_CLASSES,
    CensusZone,
    DiagnosticRecord,
    TransactionRecord,
)
from .sample_data import generate_sample_diagnostics, generate_sample_transactions
from .sources import (
    RecordSource,
    RemoteRecordSource,
    StaticRecordSource,
    dpe_source,
    dvf_source,
    load_all,
)

__all__ = [
    # Exceptions
    "AcquisitionError",
    "AuthenticationError",
    "ConnectionError",
    "InvalidResponseError",
    "MaxRetriesExceededError",
    "NotFoundError",
    "RateLimitError",
    "ServerError",
    "TimeoutError",
    # Configuration
    "APIClientConfig",
    "BoundingBox",
    "ConnectionLimits",
    "RateLimitConfig",
    "RetryConfig",
    "TargetArea",
    "TimeoutConfig",
    "DVF_CONFIG",
    "DPE_CONFIG",
    # Records
    "ENERGY_CLASSES",
    "FAILING_CLASSES",
    "CensusZone",
    "DiagnosticRecord",
    "TransactionRecord",
    # Clients
    "DVFClient",
    "DPEClient",
    # Fallback data and sources
    "generate_sample_diagnostics",
    "generate_sample_transactions",
    "RecordSource",
    "RemoteRecordSource",
    "StaticRecordSource",
    "dvf_source",
    "dpe_source",
    "load_all",
    # Census reference data
    "BOUFFAY_IRIS_ZONES",
    "load_census_zones",
    "parse_census_zones",
]
