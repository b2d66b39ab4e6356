from django.urls import path

from . import views

app_name = "dashboard"
urlpatterns = [
    path("api/admin/login", views.login_api, name="login_api"),
    path("api/admin/logout", views.logout_api, name="logout_api"),
    path("api/admin/donations", views.donations_api, name="donations_api"),
    path("api/admin/analytics", views.analytics_api, name="analytics_api"),
    path("api/admin/analytics.csv", views.analytics_csv, name="analytics_csv"),

    path("admin/login", views.login_page, name="login"),
    path("admin/dashboard", views.dashboard_page, name="home"),
    path("admin/dashboard/analytics", views.analytics_page, name="analytics"),
    path("admin/dashboard/events", views.events_page, name="events"),
]
