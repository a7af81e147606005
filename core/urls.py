from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    # -------------------------------
    # Django default admin
    # -------------------------------
    path("admin/", admin.site.urls),

    # -------------------------------
    # Auth & current user
    # -------------------------------
    path("api/auth/", include(("apps.accounts.urls", "accounts"), namespace="accounts")),

    # -------------------------------
    # Home & notifications
    # -------------------------------
    path("api/dashboard/", include(("apps.dashboard.urls", "dashboard"), namespace="dashboard")),

    # -------------------------------
    # Tasks & orientation
    # -------------------------------
    path("api/tasks/", include(("apps.gigs.urls", "gigs"), namespace="gigs")),

    # -------------------------------
    # Wallet
    # -------------------------------
    path("api/wallet/", include(("apps.wallet.urls", "wallet"), namespace="wallet")),

    # -------------------------------
    # Subscriptions & PayPal
    # -------------------------------
    path("api/payments/", include(("apps.payments.urls", "payments"), namespace="payments")),

    # -------------------------------
    # Admin dashboard API
    # -------------------------------
    path("api/admin/", include(("apps.admin_panel.urls", "admin_panel"), namespace="admin_panel")),
]
