from rest_framework import serializers


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField()

    def validate_username(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('Benutzername darf nicht leer sein')
        return v

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('Passwort darf nicht leer sein')
        return v
