# certchain/common/config.py
import os

# Subject fields shared by every generated certificate
SUBJECT_COUNTRY = os.environ.get("CERTCHAIN_COUNTRY", "DE")
SUBJECT_LOCALITY = os.environ.get("CERTCHAIN_LOCALITY", "Berlin")
SUBJECT_ORGANIZATION = os.environ.get("CERTCHAIN_ORGANIZATION", "CertChain")
COMMON_NAME_PREFIX = os.environ.get("CERTCHAIN_CN_PREFIX", "CertChain Testing Services")

VALIDITY_SECONDS = 60 * 60 * 24 * 365  # 1 year
SERIAL_UPPER_BOUND = 10 ** 10

CERTS_DIR = os.environ.get("CERTCHAIN_CERTS_DIR", "certs")
