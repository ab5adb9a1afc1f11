from django.urls import path, include
from rest_framework.routers import DefaultRouter

# App specific viewset imports
from workspaces.views import SpaceViewSet
from plugins.views import PluginViewSet

router = DefaultRouter()

# App specific router registrations
router.register(r'spaces', SpaceViewSet, basename='space')
router.register(r'plugins', PluginViewSet, basename='plugin')

urlpatterns = [
    path('', include(router.urls)), # Includes all registered ViewSets
    path('invitations/', include('invitations.urls')),
    path('user/', include('users.urls')),
]
