# -----------------------------------------------------------------------------
# DJANGO SETTINGS FOR PROMOG
# -----------------------------------------------------------------------------
import logging
from pathlib import Path
from celery.schedules import crontab
import environ
import dj_database_url

# -----------------------------------------------------------------------------
# BASE DIRECTORY
# -----------------------------------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent

# -----------------------------------------------------------------------------
# ENVIRONMENT VARIABLES (.env)
# -----------------------------------------------------------------------------
env = environ.Env(DEBUG=(bool, False))
environ.Env.read_env(BASE_DIR / '.env')

# -----------------------------------------------------------------------------
# CORE SETTINGS
# -----------------------------------------------------------------------------
SECRET_KEY = env('SECRET_KEY', default='unsafe-dev-key-change-me')
DEBUG = env.bool('DEBUG', default=False)
ALLOWED_HOSTS = env.list('ALLOWED_HOSTS', default=['localhost', '127.0.0.1', 'testserver'])

CSRF_TRUSTED_ORIGINS = [
    f"https://{host.strip()}" for host in ALLOWED_HOSTS
    if host.strip() not in ['localhost', '127.0.0.1', 'testserver']
]

SECURE_SSL_REDIRECT = env.bool('SECURE_SSL_REDIRECT', default=not DEBUG)
SESSION_COOKIE_SECURE = not DEBUG
CSRF_COOKIE_SECURE = not DEBUG
SESSION_COOKIE_AGE = 30 * 24 * 60 * 60

ADMIN_EMAIL = env('ADMIN_EMAIL', default='')
ADMIN_PASSWORD = env('ADMIN_PASSWORD', default='')

# -----------------------------------------------------------------------------
# EMAIL CONFIGURATION
# -----------------------------------------------------------------------------
EMAIL_BACKEND = 'django.core.mail.backends.smtp.EmailBackend'
EMAIL_HOST = env('EMAIL_HOST', default='smtp.gmail.com')
EMAIL_PORT = env.int('EMAIL_PORT', default=587)
EMAIL_USE_TLS = True
EMAIL_HOST_USER = env('EMAIL_HOST_USER', default='')
EMAIL_HOST_PASSWORD = env('EMAIL_HOST_PASSWORD', default='')
DEFAULT_FROM_EMAIL = EMAIL_HOST_USER or 'noreply@promo-g.com'

NOTIFICATION_EMAILS_ENABLED = env.bool('NOTIFICATION_EMAILS_ENABLED', default=False)

# -----------------------------------------------------------------------------
# DATABASE CONFIGURATION
# -----------------------------------------------------------------------------
DATABASES = {
    'default': dj_database_url.config(
        default=env('DATABASE_URL', default='sqlite:///' + str(BASE_DIR / 'db.sqlite3')),
        conn_max_age=600,
        ssl_require=env.bool('DATABASE_SSL_REQUIRE', default=False),
    )
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# -----------------------------------------------------------------------------
# INSTALLED APPS
# -----------------------------------------------------------------------------
INSTALLED_APPS = [
    # Django core
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    # Third-party
    'django_celery_beat',
    'django_celery_results',

    # Project apps (inside apps/)
    'apps.accounts.apps.AccountsConfig',
    'apps.dashboard.apps.DashboardConfig',
    'apps.wallet.apps.WalletConfig',
    'apps.gigs.apps.GigsConfig',
    'apps.payments.apps.PaymentsConfig',
    'apps.admin_panel.apps.AdminPanelConfig',
]

AUTH_USER_MODEL = 'accounts.User'

AUTHENTICATION_BACKENDS = [
    'apps.accounts.auth_backend.EmailAuthBackend',
]

# -----------------------------------------------------------------------------
# MIDDLEWARE
# -----------------------------------------------------------------------------
MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'core.urls'
WSGI_APPLICATION = 'core.wsgi.application'
ASGI_APPLICATION = 'core.asgi.application'

# -----------------------------------------------------------------------------
# TEMPLATES (Django admin only)
# -----------------------------------------------------------------------------
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

# -----------------------------------------------------------------------------
# PASSWORD VALIDATION
# -----------------------------------------------------------------------------
AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

# -----------------------------------------------------------------------------
# INTERNATIONALIZATION
# -----------------------------------------------------------------------------
LANGUAGE_CODE = 'en-us'
TIME_ZONE = env('TIME_ZONE', default='Africa/Nairobi')
USE_I18N = True
USE_TZ = True

# -----------------------------------------------------------------------------
# STATIC FILES
# -----------------------------------------------------------------------------
STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'whitenoise.storage.CompressedManifestStaticFilesStorage'},
}

# -----------------------------------------------------------------------------
# CELERY CONFIGURATION
# -----------------------------------------------------------------------------
CELERY_BROKER_URL = env('REDIS_URL', default='redis://127.0.0.1:6379/0')
CELERY_RESULT_BACKEND = 'django-db'
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_ALWAYS_EAGER = env.bool('CELERY_TASK_ALWAYS_EAGER', default=False)

CELERY_BEAT_SCHEDULE = {
    'reconcile_stale_orders_every_10min': {
        'task': 'apps.payments.tasks.reconcile_stale_orders',
        'schedule': crontab(minute='*/10'),
    },
    'expire_subscriptions_daily': {
        'task': 'apps.payments.tasks.expire_subscriptions',
        'schedule': crontab(hour=0, minute=0),
    },
}

# -----------------------------------------------------------------------------
# PAYPAL
# -----------------------------------------------------------------------------
PAYPAL_CLIENT_ID = env('PAYPAL_CLIENT_ID', default='')
PAYPAL_CLIENT_SECRET = env('PAYPAL_CLIENT_SECRET', default='')
PAYPAL_BASE_URL = env('PAYPAL_BASE_URL', default='https://api-m.sandbox.paypal.com')
PAYPAL_WEBHOOK_SECRET = env('PAYPAL_WEBHOOK_SECRET', default='')
PAYPAL_RETURN_URL = env('PAYPAL_RETURN_URL', default='http://localhost:5000/subscription-success')
PAYPAL_CANCEL_URL = env('PAYPAL_CANCEL_URL', default='http://localhost:5000/subscription?cancelled=true')
PAYMENT_CURRENCY = env('PAYMENT_CURRENCY', default='USD')

# -----------------------------------------------------------------------------
# SUBSCRIPTIONS, TIERS & REFERRALS
# -----------------------------------------------------------------------------
SUBSCRIPTION_PERIOD_DAYS = env.int('SUBSCRIPTION_PERIOD_DAYS', default=30)
REFERRAL_BONUS_RATE = env('REFERRAL_BONUS_RATE', default='0.10')
STALE_ORDER_MINUTES = env.int('STALE_ORDER_MINUTES', default=60)

# Optional override of the built-in tier table, e.g.
# {"member": {"price": "5", "daily_tasks": 2, "categories": ["main"]}, ...}
TIER_CATALOG = env.json('TIER_CATALOG', default={})

# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {'format': '%(asctime)s %(levelname)s %(name)s: %(message)s'},
    },
    'handlers': {'console': {'class': 'logging.StreamHandler', 'formatter': 'simple'}},
    'root': {'handlers': ['console'], 'level': logging.INFO},
}
