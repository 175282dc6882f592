from django.urls import path
from .views import media_list, media_upload, media_detail

urlpatterns = [
    path('media/', media_list, name='media-list'),
    path('media/upload/', media_upload, name='media-upload'),
    path('media/<int:pk>/', media_detail, name='media-detail'),
]
