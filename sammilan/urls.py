from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    # /admin/ belongs to the donation dashboard; Django's admin lives elsewhere
    path("site-admin/", admin.site.urls),
    path("", include("donations.urls")),
    path("", include("dashboard.urls")),
    path("", include("website.urls")),
]

handler404 = "sammilan.views.error_404_view"
handler500 = "sammilan.views.error_500_view"
