class FetchError(Exception):
    """Upstream portal could not be reached or returned something unusable"""


class InvalidDistrictId(ValueError):
    """District id outside the enumerated district catalog"""

    def __init__(self, district_id: str):
        self.district_id = district_id
        super().__init__(f"Unknown district: {district_id}")


class UnknownFuelType(ValueError):
    """Fuel type that matches no known petroleum code, id or name"""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Unknown fuel type: {value}")
