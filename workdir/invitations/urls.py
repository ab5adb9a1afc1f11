from django.urls import path
from .views import InvitationDetailView, SendInvitationView, SpaceInvitationsView

urlpatterns = [
    path('space/<str:space_id>/', SpaceInvitationsView.as_view(), name='space-invitations'),
    path('<str:pk>/', InvitationDetailView.as_view(), name='invitation-detail'),
    path('<str:pk>/send/', SendInvitationView.as_view(), name='invitation-send'),
]
