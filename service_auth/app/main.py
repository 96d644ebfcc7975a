"""
Auth service: Google Sign-In login endpoint backed by TokenValidator.
"""

from typing import Any, Dict, Optional

import httpx
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.logging import set_subject
from .models import VerificationResult, VerifiedClaims
from .validation.token_validator import TokenValidator


class TokenVerificationRequest(BaseModel):
    """Request model for token verification."""
    token: Optional[str] = None


def user_info(claims: VerifiedClaims) -> Dict[str, Any]:
    """Public user representation returned to the browser."""
    return {
        "id": claims.sub,
        "email": claims.email,
        "name": claims.name,
        "picture": claims.picture,
        "emailVerified": claims.email_verified,
    }


class AuthService(BaseService):
    """Auth service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        token_validator: Optional[TokenValidator] = None,
    ):
        super().__init__("auth", 3333, config or get_config("auth", 3333))
        self.token_validator = token_validator
        self._http_client: Optional[httpx.AsyncClient] = None
        self._setup_auth_routes()

    async def startup(self) -> None:
        """Create the outbound HTTP client and the validator that owns it."""
        if self.token_validator is not None:
            return
        self._http_client = httpx.AsyncClient(timeout=self.config.jwks_http_timeout)
        self.token_validator = TokenValidator.from_config(
            self.config,
            self._http_client,
            metrics=self.metrics,
        )
        self.logger.info("Token validator ready", jwks_url=self.config.jwks_url)

    async def shutdown(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
            self.token_validator = None

    def _setup_auth_routes(self):
        """Set up auth-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "auth",
                "message": "ID token verification - Auth Service",
                "version": "1.0.0"
            }

        @self.app.post("/login-with-google")
        async def login_with_google(request: TokenVerificationRequest):
            """Verify a Google ID token and return the signed-in user."""
            if not request.token:
                return JSONResponse(
                    status_code=400,
                    content={"success": False, "error": "Token is required"},
                )

            result = await self.token_validator.verify(request.token)
            if not result.valid:
                return JSONResponse(
                    status_code=401,
                    content={
                        "success": False,
                        "error": "Invalid token or authentication failed",
                        "code": result.error.value,
                    },
                )

            set_subject(result.claims.sub)
            self.logger.info("User logged in", email_verified=result.claims.email_verified)
            return {
                "success": True,
                "user": user_info(result.claims),
                "message": "Login successful",
            }

        @self.app.post("/auth/verify", response_model=VerificationResult)
        async def verify_token(request: TokenVerificationRequest):
            """Token verification endpoint."""
            return await self.token_validator.verify(request.token or "")

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check the identity provider's key endpoint."""
        if self.token_validator is None:
            return {"jwks": "error"}
        return {"jwks": await self.token_validator.jwks_client.check_health()}


def create_app():
    """Create FastAPI application."""
    service = AuthService()
    return service.app


if __name__ == "__main__":
    service = AuthService()
    service.run()
