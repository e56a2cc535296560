"""Prometheus gauge families, one per finding status."""

from prometheus_client import REGISTRY, CollectorRegistry, Gauge

from dojo_exporter.services.aggregation import StatusDimension

METRIC_PREFIX = "dojo_vulnerabilities"
LABEL_NAMES = ("product", "product_type", "severity", "cwe")

GAUGE_HELP: dict[StatusDimension, str] = {
    StatusDimension.ACTIVE: "Number of active vulnerabilities in DefectDojo",
    StatusDimension.DUPLICATE: "Number of duplicate vulnerabilities in DefectDojo",
    StatusDimension.UNDER_REVIEW: "Number of vulnerabilities under review in DefectDojo",
    StatusDimension.FALSE_POSITIVE: "Number of false positive vulnerabilities in DefectDojo",
    StatusDimension.OUT_OF_SCOPE: "Number of vulnerabilities out of scope in DefectDojo",
    StatusDimension.RISK_ACCEPTED: "Number of vulnerabilities with risk accepted in DefectDojo",
    StatusDimension.VERIFIED: "Number of verified vulnerabilities in DefectDojo",
    StatusDimension.MITIGATED: "Number of mitigated vulnerabilities in DefectDojo",
}


def metric_name(dimension: StatusDimension) -> str:
    return f"{METRIC_PREFIX}_{dimension.value}"


class VulnerabilityGauges:
    """The eight gauge families, registered on one registry (the process default unless given)."""

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        self.registry = registry
        self._gauges: dict[StatusDimension, Gauge] = {
            dimension: Gauge(
                metric_name(dimension),
                GAUGE_HELP[dimension],
                labelnames=LABEL_NAMES,
                registry=registry,
            )
            for dimension in StatusDimension
        }

    def set(
        self,
        dimension: StatusDimension,
        product: str,
        product_type: str,
        severity: str,
        cwe: str,
        value: float,
    ) -> None:
        self._gauges[dimension].labels(
            product=product,
            product_type=product_type,
            severity=severity,
            cwe=cwe,
        ).set(value)
