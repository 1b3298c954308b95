# =============================================================================
# Runtime API Endpoints
# =============================================================================
# https://docs.aws.amazon.com/lambda/latest/dg/runtimes-api.html
# =============================================================================

from dataclasses import dataclass
from urllib.parse import quote

API_VERSION = "2018-06-01"


@dataclass(frozen=True)
class RuntimeEndpoints:
    """The four control-plane URIs, derived once from the base address."""
    base: str

    @classmethod
    def from_api_address(cls, address: str) -> "RuntimeEndpoints":
        """Build endpoints from the AWS_LAMBDA_RUNTIME_API value (host:port)."""
        address = address.strip().rstrip("/")
        if "://" not in address:
            address = f"http://{address}"
        return cls(base=f"{address}/{API_VERSION}/runtime")

    @property
    def next_invocation(self) -> str:
        """Retrieves an invocation event."""
        return f"{self.base}/invocation/next"

    @property
    def init_error(self) -> str:
        """Reports an initialization error to the control plane."""
        return f"{self.base}/init/error"

    def response(self, request_id: str) -> str:
        """Sends an invocation response."""
        return f"{self.base}/invocation/{quote(request_id, safe='')}/response"

    def error(self, request_id: str) -> str:
        """Reports a failed invocation."""
        return f"{self.base}/invocation/{quote(request_id, safe='')}/error"
