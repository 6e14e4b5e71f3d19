from rest_framework import serializers

from clinic.extraction import DocumentType
from clinic.models import OCRJob, Player

DOCUMENT_TYPES = [t.value for t in DocumentType]


class OCRUploadSerializer(serializers.Serializer):
    file = serializers.FileField()
    playerId = serializers.PrimaryKeyRelatedField(queryset=Player.objects.all())
    documentType = serializers.ChoiceField(choices=DOCUMENT_TYPES, required=False, default=DocumentType.GENERIC.value)


class OCRProcessSerializer(serializers.Serializer):
    file_path = serializers.CharField(max_length=500)
    document_type = serializers.CharField(max_length=50, required=False, allow_blank=True)
    player_id = serializers.IntegerField(min_value=1, required=False)


class OCRListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c[0] for c in OCRJob.STATUS_CHOICES], required=False)
    playerId = serializers.IntegerField(min_value=1, required=False)
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, max_value=200, required=False)
