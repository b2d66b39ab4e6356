from django.urls import path

from . import views

app_name = "website"
urlpatterns = [
    path("", views.home_view, name="home"),
    path("api/events", views.events_api, name="events_api"),
    path("api/contact", views.contact_api, name="contact_api"),
]
