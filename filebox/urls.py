"""Root URL configuration.

The file manager has no HTTP surface of its own; only the admin is routed.
"""

from django.contrib import admin
from django.urls import path

urlpatterns = [
    path('admin/', admin.site.urls),
]
