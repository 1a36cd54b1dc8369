from .base import *

DEBUG = False

# Security settings for production.
# Trust the X-Forwarded-Proto header set by the hosting proxy.
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
# Redirect all non-HTTPS requests to HTTPS.
SECURE_SSL_REDIRECT = True

SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'

ACCOUNT_EMAIL_VERIFICATION = os.getenv('ACCOUNT_EMAIL_VERIFICATION', 'mandatory')

# WhiteNoise serves compressed, hashed static files in production.
STORAGES = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'staticfiles': {
        'BACKEND': 'whitenoise.storage.CompressedManifestStaticFilesStorage',
    },
}

APP_HOST = os.getenv('APP_HOST', '')

if APP_HOST:
    ALLOWED_HOSTS = [APP_HOST]
    SITE_DOMAIN = APP_HOST
    CSRF_TRUSTED_ORIGINS = [f'https://{APP_HOST}']
