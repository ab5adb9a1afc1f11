from django.http import Http404
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema, OpenApiParameter

from core.pagination import parse_limit
from workspaces.access import find_space, require_member
from .filters import PublishedPluginFilter
from .models import PublishedPlugin
from .serializers import PublishedPluginSerializer, PublishedPluginDetailSerializer, SpacePlacementSerializer


class PluginViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Read-only access to the published plugin catalog.
    Deleted plugins stay listed (flagged by is_deleted) so spaces that still
    place them can render a placeholder.
    """
    queryset = PublishedPlugin.objects.all()
    serializer_class = PublishedPluginSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = PublishedPluginFilter

    def get_queryset(self):
        if self.action == 'retrieve':
            return PublishedPlugin.objects.select_related('author')
        return super().get_queryset()

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return PublishedPluginDetailSerializer
        return super().get_serializer_class()

    def get_object(self):
        try:
            return super().get_object()
        except Http404:
            raise NotFound('The plugin does not exist.')

    @extend_schema(
        parameters=[OpenApiParameter(name='limit', type=OpenApiTypes.INT, location=OpenApiParameter.QUERY, description="Maximum number of entries returned.")],
    )
    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        entity_count = queryset.count()
        limit = parse_limit(request.query_params.get('limit'))
        if limit:
            queryset = queryset[:limit]
        return Response({
            'entities': self.get_serializer(queryset, many=True).data,
            'pagination': {'entity_count': entity_count, 'limit': limit},
        })

    @extend_schema(responses={200: SpacePlacementSerializer(many=True)})
    @action(detail=False, methods=['get'], url_path=r'space/(?P<space_id>[^/.]+)', url_name='space', filter_backends=[])
    def space(self, request, space_id=None):
        """Placements of a space with their plugin's catalog data. Members only."""
        space = find_space(space_id)
        require_member(request.user, space)
        placements = space.placements.select_related('plugin')
        return Response(SpacePlacementSerializer(placements, many=True).data)
