from django.urls import path

from . import views

app_name = "widgets"

urlpatterns = [
    path("", views.welcome, name="welcome"),
    path("widgets/", views.widget_list, name="list"),
    path("widgets/new/", views.widget_new, name="new"),
    path("widgets/<int:pk>/", views.widget_detail, name="detail"),
    path("widgets/<int:pk>/edit/", views.widget_edit, name="edit"),
    path("widgets/<int:pk>/delete/", views.widget_delete, name="delete"),
]
