"""
Prometheus metrics definitions.
All metrics are registered here and can be imported by other modules.
"""
from prometheus_client import Counter, Histogram

# HTTP request metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'path', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'path'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0]
)

# Error metrics
errors_total = Counter(
    'errors_total',
    'Total errors',
    ['error_type']
)

# Generation workflow metrics
generation_requests_total = Counter(
    'generation_requests_total',
    'Generation requests by artifact kind and final outcome',
    ['kind', 'outcome']
)

generation_duration_seconds = Histogram(
    'generation_duration_seconds',
    'End-to-end generation duration in seconds',
    ['kind'],
    buckets=[1.0, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0, 300.0]
)

rate_limit_rejections_total = Counter(
    'rate_limit_rejections_total',
    'Requests rejected by the rate limiter',
    ['request_type']
)

# Credit ledger metrics
credits_debited_total = Counter(
    'credits_debited_total',
    'Credits debited for generation requests',
    ['kind']
)

credits_refunded_total = Counter(
    'credits_refunded_total',
    'Credits returned by compensating refunds',
    ['kind']
)

credit_refund_failures_total = Counter(
    'credit_refund_failures_total',
    'Compensating refunds that failed and need manual reconciliation',
    ['kind']
)

# AI provider metrics
ai_provider_requests_total = Counter(
    'ai_provider_requests_total',
    'Total AI provider requests',
    ['provider', 'operation']
)

ai_provider_failures_total = Counter(
    'ai_provider_failures_total',
    'Total AI provider failures',
    ['provider', 'operation']
)

ai_provider_latency_seconds = Histogram(
    'ai_provider_latency_seconds',
    'AI provider request latency in seconds',
    ['provider', 'operation'],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0]
)

ai_provider_tokens_total = Counter(
    'ai_provider_tokens_total',
    'Total AI provider tokens used',
    ['provider', 'operation', 'token_type']
)

# Consent metrics
consent_updates_total = Counter(
    'consent_updates_total',
    'Marketing consent updates by action and outcome',
    ['action', 'outcome']
)
