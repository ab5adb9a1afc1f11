from django.urls import path
from .views import CurrentUserView, UserSpacePermissionsView

urlpatterns = [
    path('', CurrentUserView.as_view(), name='current-user'),
    path('space/<str:space_id>/permissions/', UserSpacePermissionsView.as_view(), name='user-space-permissions'),
]
