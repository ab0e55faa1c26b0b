"""
nopparat_it/urls.py
===================
Root URLconf. The repair desk owns /admin/ for its own dashboard, so the
Django admin site is mounted at /django-admin/.
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("django-admin/", admin.site.urls),
    path("", include("repairs.urls")),
]
