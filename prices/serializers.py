from rest_framework import serializers


class PriceSerializer(serializers.Serializer):
    """Single fuel type reading: {"id": "unlead_95", "label": "Unlead95", "value": 1.5}"""

    id = serializers.CharField(source='fuel_type.id')
    label = serializers.CharField(source='fuel_type.label')
    value = serializers.DecimalField(max_digits=None, decimal_places=None, coerce_to_string=False)


class DistrictSerializer(serializers.Serializer):
    id = serializers.CharField()
    name_en = serializers.CharField()
    name_el = serializers.CharField()


class StationSerializer(serializers.Serializer):
    """Merged station with one price per fuel type"""

    brand = serializers.CharField()
    offline = serializers.BooleanField()
    company = serializers.CharField()
    address = serializers.CharField()
    latitude = serializers.CharField()
    longitude = serializers.CharField()
    area = serializers.CharField()
    prices = PriceSerializer(many=True)

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if instance.district is not None:
            data['district'] = DistrictSerializer(instance.district).data
        return data


class SnapshotSerializer(serializers.Serializer):
    updated_at = serializers.IntegerField()
    updated_at_text = serializers.CharField()
    districts = serializers.SerializerMethodField()

    def get_districts(self, snapshot) -> dict:
        return {
            district_id: StationSerializer(list(stations.values()), many=True).data
            for district_id, stations in snapshot.districts.items()
        }


class CatalogEntrySerializer(serializers.Serializer):
    id = serializers.CharField(source='district.id')
    name_en = serializers.CharField(source='district.name_en')
    name_el = serializers.CharField(source='district.name_el')
    areas = serializers.ListField(child=serializers.CharField())


class DistrictStationsSerializer(serializers.Serializer):
    district = DistrictSerializer()
    updated_at = serializers.IntegerField()
    stations = StationSerializer(many=True)


class FuelTypePricesSerializer(serializers.Serializer):
    fuel_type = serializers.CharField()
    label = serializers.CharField()
    updated_at = serializers.IntegerField()
    stations = StationSerializer(many=True)


class RefreshResponseSerializer(serializers.Serializer):
    started = serializers.BooleanField()
