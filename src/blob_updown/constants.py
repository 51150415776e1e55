# Constants
DEFAULT_COUNT = 5
DEFAULT_SIZE = 10 * 1024  # 10 KB
DEFAULT_SEED = 0
MEGABYTE = 1024 * 1024
DEFAULT_PARALLEL_PARTS = 1
DEFAULT_REGION = "us-east-1"
PRESIGNED_URL_EXPIRATION = 3600  # seconds
DOWNLOAD_CHUNK_SIZE = 65536

CONNECTION_STRING_ENV = "STORAGE_CONNECTION_STRING"

# Target object
CONTAINER_NAME = "testcontainer"
BLOB_NAME = "testblobupdown"

# Storage backends
BACKEND_AZURE = "azure"
BACKEND_S3 = "s3"

# Transfer directions
DIRECTION_UPLOAD = "upload"
DIRECTION_DOWNLOAD = "download"
