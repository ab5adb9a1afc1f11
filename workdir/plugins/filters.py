import django_filters

from .models import PublishedPlugin


class PublishedPluginFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name='name', lookup_expr='icontains')

    class Meta:
        model = PublishedPlugin
        fields = ['name']
