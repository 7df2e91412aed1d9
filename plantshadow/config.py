"""Device configuration and the AWS IoT shadow topic names derived from it."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_MQTT_PORT = 8883
DEFAULT_SOIL_MOISTURE_PIN = 32
DEFAULT_SERVO_PIN = 18


@dataclass(frozen=True)
class ShadowTopics:
    """The MQTT topics of one thing's classic device shadow."""

    update: str
    delta: str
    get: str
    get_accepted: str
    get_rejected: str
    update_accepted: str
    update_rejected: str

    @classmethod
    def for_thing(cls, thing_name: str) -> ShadowTopics:
        """Build the shadow topics for the thing called ``thing_name``."""
        if not thing_name:
            raise ValueError("thing name must not be empty")
        base = f"$aws/things/{thing_name}/shadow"
        return cls(
            update=f"{base}/update",
            delta=f"{base}/update/delta",
            get=f"{base}/get",
            get_accepted=f"{base}/get/accepted",
            get_rejected=f"{base}/get/rejected",
            update_accepted=f"{base}/update/accepted",
            update_rejected=f"{base}/update/rejected",
        )

    @property
    def subscriptions(self) -> tuple[str, ...]:
        """Topics the device listens on, in the order it subscribes to them."""
        return (
            self.delta,
            self.get_accepted,
            self.get_rejected,
            self.update_accepted,
            self.update_rejected,
        )


@dataclass(frozen=True)
class DeviceConfig:
    """Network, cloud, pin and calibration settings of the plant device."""

    wifi_ssid: str
    wifi_password: str
    endpoint: str
    thing_name: str
    root_ca: str
    device_certificate: str
    device_private_key: str
    soil_dry_value: int
    soil_wet_value: int
    servo_sad_angle: int
    servo_happy_angle: int
    servo_neutral_angle: int
    port: int = DEFAULT_MQTT_PORT
    soil_moisture_pin: int = DEFAULT_SOIL_MOISTURE_PIN
    servo_pin: int = DEFAULT_SERVO_PIN

    @property
    def topics(self) -> ShadowTopics:
        """Shadow topics for the configured thing."""
        return ShadowTopics.for_thing(self.thing_name)