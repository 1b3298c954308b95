from simple_lambda.events.gateway import GatewayRequest, GatewayResponse

__all__ = [
    "GatewayRequest",
    "GatewayResponse",
]
