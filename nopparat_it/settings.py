"""
nopparat_it/settings.py
=======================
Base settings shared by local development and production.
Environment-specific overrides live in settings_production.py.

Service credentials (admin login, LINE channel, webhook mirror) are read
from the environment here and consumed everywhere else through
django.conf.settings.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

# --- Security (overridden in production via env var) ----------------------
SECRET_KEY = 'django-insecure-dev-key-replace-in-production'
DEBUG      = True
ALLOWED_HOSTS = ['*']

# --- Applications ---------------------------------------------------------
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'repairs',
]

# --- Middleware ------------------------------------------------------------
MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',   # serves static files in prod
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'nopparat_it.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'nopparat_it.wsgi.application'

# --- Database (SQLite for local dev; overridden in production) ------------
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}

# --- Password validation --------------------------------------------------
AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

# --- Internationalisation --------------------------------------------------
LANGUAGE_CODE = 'th'
TIME_ZONE     = 'Asia/Bangkok'
USE_I18N = True
USE_TZ   = True

# --- Static files ---------------------------------------------------------
STATIC_URL  = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'   # collectstatic target

# WhiteNoise compression + caching for production
STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'whitenoise.storage.CompressedManifestStaticFilesStorage'},
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# --- Session --------------------------------------------------------------
SESSION_COOKIE_AGE    = 28800   # 8 hours, Django admin site only
SESSION_COOKIE_SECURE = False   # set True in production (HTTPS only)

# --- Repair desk administrator ---------------------------------------------
# A single administrator configured from the environment. The signed cookie
# holds the username only; rotating ADMIN_COOKIE_SECRET logs everyone out.
ADMIN_USER            = os.environ.get('ADMIN_USER', '')
ADMIN_PASS            = os.environ.get('ADMIN_PASS', '')
ADMIN_COOKIE_SECRET   = os.environ.get('ADMIN_COOKIE_SECRET', '')
ADMIN_COOKIE_NAME     = 'admin_auth'
ADMIN_COOKIE_MAX_AGE  = 60 * 60 * 24    # 24 hours
ADMIN_COOKIE_SECURE   = False           # True in production

# --- LINE Messaging API ----------------------------------------------------
LINE_CHANNEL_SECRET       = os.environ.get('LINE_CHANNEL_SECRET', '')
LINE_CHANNEL_ACCESS_TOKEN = os.environ.get('LINE_CHANNEL_ACCESS_TOKEN', '')
LINE_USER_ID              = os.environ.get('LINE_USER_ID', '')
LINE_NOTIFY_TOKEN         = os.environ.get('LINE_NOTIFY_TOKEN', '')
LINE_API_TIMEOUT          = int(os.environ.get('LINE_API_TIMEOUT', '10'))

APP_URL          = os.environ.get('APP_URL', 'http://localhost:8000/')
WEBHOOK_SITE_URL = os.environ.get('WEBHOOK_SITE_URL', '')

# --- Exports ---------------------------------------------------------------
# Helvetica has no Thai glyphs; point this at e.g. THSarabunNew.ttf.
PDF_FONT_PATH = os.environ.get('PDF_FONT_PATH', '')

# --- Logging --------------------------------------------------------------
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"},
    },
    "handlers": {"console": {"class": "logging.StreamHandler", "formatter": "simple"}},
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "repairs": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}
