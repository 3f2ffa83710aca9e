import os
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional

class Settings(BaseSettings):
    app_env: str = Field("dev", alias="APP_ENV")
    app_host: str = Field("0.0.0.0", alias="APP_HOST")
    app_port: int = Field(8000, alias="APP_PORT")
    log_level: str = Field("info", alias="LOG_LEVEL")
    cors_allow_origins: str = Field("*", alias="CORS_ALLOW_ORIGINS")

    # --- Content directory + local fallback store ---
    upload_root: str = Field("uploads", alias="UPLOAD_ROOT")
    local_metadata_path: Optional[str] = Field(None, alias="LOCAL_METADATA_PATH")
    max_file_size_bytes: int = Field(10 * 1024 * 1024, alias="MAX_FILE_SIZE_BYTES")

    # --- Remote store (Firestore). Either a service account file or the three values below. ---
    documents_collection: str = Field("documents", alias="DOCUMENTS_COLLECTION")
    firebase_service_account_path: Optional[str] = Field(None, alias="FIREBASE_SERVICE_ACCOUNT_PATH")
    firebase_project_id: Optional[str] = Field(None, alias="FIREBASE_PROJECT_ID")
    firebase_client_email: Optional[str] = Field(None, alias="FIREBASE_CLIENT_EMAIL")
    # private key usually arrives quoted with literal "\n" sequences
    firebase_private_key: Optional[str] = Field(None, alias="FIREBASE_PRIVATE_KEY")
    firebase_jwks_url: str = Field(
        "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com",
        alias="FIREBASE_JWKS_URL",
    )

    # --- Local identity provider (dev/tests only, HS256) ---
    jwt_secret: Optional[str] = Field(None, alias="JWT_SECRET")
    jwt_issuer: Optional[str] = Field(None, alias="JWT_ISSUER")

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    def metadata_file(self) -> str:
        return self.local_metadata_path or os.path.join(self.upload_root, "local_metadata.json")

    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]

settings = Settings()
