"""Application logic that keeps the plant device in sync with its cloud shadow."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from plantshadow.config import DeviceConfig
from plantshadow.moisture import HumidityRange, MoistureSensor, range_to_string, string_to_range
from plantshadow.mqtt import MQTTManager
from plantshadow.servo import EmotionalServo

logger = logging.getLogger(__name__)

HAPPY = "FELIZ"
SAD = "TRISTE"
NEUTRAL = "NEUTRAL"
CUSTOM = "CUSTOM"
KNOWN_EMOTIONS = (HAPPY, SAD, NEUTRAL)

RECONNECT_INTERVAL_MS = 5000
MIN_RANGE_REPORT_INTERVAL_MS = 10000
MISSING_VERSION_GET_INTERVAL_MS = 60000


def _monotonic_millis() -> int:
    return int(time.monotonic() * 1000)


def _as_object(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def _as_int(value: Any) -> int:
    if isinstance(value, (bool, int)):
        return int(value)
    if isinstance(value, float):
        return int(value)
    return 0


def _as_version(value: Any) -> int:
    return max(_as_int(value), 0)


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    return json.dumps(value, separators=(",", ":"))


class AppLogic:
    """Reports soil humidity and servo mood to the shadow and applies desired state."""

    def __init__(
        self,
        config: DeviceConfig,
        mqtt: MQTTManager | None,
        sensor: MoistureSensor,
        servo: EmotionalServo,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.config = config
        self.topics = config.topics
        self.mqtt = mqtt if mqtt is not None else MQTTManager(
            config.endpoint, config.port, config.thing_name
        )
        self.sensor = sensor
        self.servo = servo
        self._clock = clock if clock is not None else _monotonic_millis
        self.last_telemetry_millis = 0
        self.last_reconnect_attempt = 0
        self.shadow_version = 0
        self.last_reported_range = HumidityRange.UNKNOWN
        self.last_processed_emotion = NEUTRAL
        self.report_just_sent = False

    def _millis(self) -> int:
        return int(self._clock())

    def _request_shadow(self) -> bool:
        return self.mqtt.publish(self.topics.get, "")

    def _emotion_for_angle(self, angle: int) -> str:
        if angle == self.servo.happy_angle:
            return HAPPY
        if angle == self.servo.sad_angle:
            return SAD
        if angle == self.servo.neutral_angle:
            return NEUTRAL
        return CUSTOM

    def _emotion_angle(self, emotion: str) -> int | None:
        return {
            HAPPY: self.servo.happy_angle,
            SAD: self.servo.sad_angle,
            NEUTRAL: self.servo.neutral_angle,
        }.get(emotion)

    def _apply_emotion(self, emotion: str) -> None:
        {
            HAPPY: self.servo.set_happy,
            SAD: self.servo.set_sad,
            NEUTRAL: self.servo.set_neutral,
        }[emotion]()

    def setup(self) -> None:
        """Centre the servo, register shadow subscriptions and ask for the shadow."""
        logger.info("Starting AppLogic setup...")
        self.servo.attach()
        self.servo.set_neutral()
        self._setup_mqtt()
        logger.info("AppLogic setup completed.")

    def _setup_mqtt(self) -> None:
        logger.info("Configuring AWS MQTT...")
        self.mqtt.set_certificates(
            self.config.root_ca, self.config.device_certificate, self.config.device_private_key
        )
        for topic in self.topics.subscriptions:
            self.mqtt.subscribe(topic, self.handle_message)
        if self.mqtt.connect():
            logger.info("Initial MQTT connection successful. Requesting shadow state (GET)...")
            if not self._request_shadow():
                logger.warning("Failed to publish GET request.")
        else:
            logger.warning("Initial MQTT connection failed. Will retry in loop.")
            self.last_reconnect_attempt = self._millis()

    def loop(self) -> None:
        """Run one iteration: keep MQTT alive, read the sensor, report range changes."""
        if not self.mqtt.connected():
            if self._millis() - self.last_reconnect_attempt > RECONNECT_INTERVAL_MS:
                logger.info("Attempting to reconnect MQTT...")
                if self.mqtt.connect():
                    logger.info("MQTT reconnected. Requesting shadow state (GET)...")
                    if not self._request_shadow():
                        logger.warning("Failed to publish GET request post-reconnect.")
                else:
                    logger.warning("MQTT reconnection failed.")
                self.last_reconnect_attempt = self._millis()
        else:
            self.mqtt.update()

        self.sensor.update()
        current_range = self.sensor.current_range

        if (
            not self.report_just_sent
            and self.mqtt.connected()
            and current_range != self.last_reported_range
            and current_range != HumidityRange.UNKNOWN
        ):
            self._report_range_change(current_range)

        if self.report_just_sent:
            self.last_reported_range = self.sensor.current_range
            self.last_telemetry_millis = self._millis()
            self.report_just_sent = False
            logger.info("Report sent by callback; range and telemetry time updated.")

    def _report_range_change(self, current_range: HumidityRange) -> None:
        if self._millis() - self.last_telemetry_millis <= MIN_RANGE_REPORT_INTERVAL_MS:
            logger.info("Humidity range changed, but report rate limited. Will try later.")
            return
        logger.info(
            "Humidity range changed. Old: %s New: %s",
            range_to_string(self.last_reported_range),
            range_to_string(current_range),
        )
        if self.shadow_version > 0:
            if self.publish_shadow_report():
                self.last_reported_range = current_range
                self.last_telemetry_millis = self._millis()
            else:
                logger.warning("Report due to humidity range change FAILED.")
            return
        logger.info("Range change report SKIPPED, shadow version is 0. Waiting for GET.")
        if self._millis() - self.last_reconnect_attempt > MISSING_VERSION_GET_INTERVAL_MS:
            if not self._request_shadow():
                logger.warning("GET request for missing version failed.")

    def handle_message(self, topic: str, payload: str | bytes) -> None:
        """Process a message received on one of the shadow topics."""
        logger.info("Message on topic: %s", topic)
        try:
            parsed = json.loads(payload)
        except ValueError as exc:
            logger.warning("JSON parsing failed: %s", exc)
            return
        doc = _as_object(parsed)
        topics = self.topics
        has_version = "version" in doc

        if has_version:
            new_version = _as_version(doc["version"])
            if topic in (topics.update_accepted, topics.delta):
                self.shadow_version = new_version
                logger.info("Shadow version set to: %d", self.shadow_version)
            elif topic == topics.get_accepted:
                if new_version > self.shadow_version or self.shadow_version == 0:
                    self.shadow_version = new_version
                    logger.info("Shadow version updated to: %d", self.shadow_version)
                else:
                    logger.info(
                        "Received version %d is not newer than current version %d",
                        new_version,
                        self.shadow_version,
                    )
        elif topic in (topics.delta, topics.get_accepted, topics.update_accepted):
            logger.warning("Message on topic %s did not contain 'version'.", topic)

        if topic == topics.delta:
            if not has_version:
                logger.error("Delta message did not contain 'version'. Aborting.")
                return
            if "state" in doc:
                self.handle_shadow_delta(_as_object(doc["state"]))
            else:
                logger.info("Delta message does not contain 'state' object.")
            if self.publish_shadow_report():
                self.report_just_sent = True
                logger.info("Delta report sent; expected cloud version %d", self.shadow_version + 1)
            else:
                logger.warning("Report FAILED after processing delta. Delta might persist.")
        elif topic == topics.get_accepted:
            self.handle_shadow_get_accepted(doc)
        elif topic == topics.get_rejected:
            logger.warning("Shadow GET request REJECTED: %s", _as_text(parsed))
            if doc.get("code") == 404:
                logger.info("Shadow not found (404).")
        elif topic == topics.update_accepted:
            self.handle_update_accepted(doc)
        elif topic == topics.update_rejected:
            self.handle_update_rejected(doc)

    def handle_shadow_delta(self, delta_state: Mapping[str, Any]) -> None:
        """Apply a desired servo angle and/or emotion to the device."""
        changed = False
        desired_emotion = self.last_processed_emotion

        if "servoAngle" in delta_state:
            desired_angle = _as_int(delta_state["servoAngle"])
            if self.servo.current_angle != desired_angle:
                self.servo.set_angle(desired_angle)
                changed = True
                if "emotion" not in delta_state:
                    desired_emotion = self._emotion_for_angle(desired_angle)

        if "emotion" in delta_state:
            emotion = _as_text(delta_state["emotion"])
            target = self._emotion_angle(emotion)
            mismatched = target is not None and self.servo.current_angle != target
            if emotion != self.last_processed_emotion or mismatched:
                if target is not None:
                    self._apply_emotion(emotion)
                    desired_emotion = emotion
                    changed = True
                else:
                    logger.warning("Unknown emotion value: %s", emotion)

        if changed:
            self.last_processed_emotion = desired_emotion
            logger.info("Local state changed; emotion is now %s", desired_emotion)
        else:
            logger.info("No local device state changes made by delta.")

    def handle_shadow_get_accepted(self, document: Mapping[str, Any]) -> None:
        """Sync from a full shadow document and report back when needed."""
        needs_report = False
        applied_desired = False
        initial_report = False

        if "state" in document:
            state = _as_object(document["state"])
            if "reported" in state:
                reported = _as_object(state["reported"])
                self._sync_reported(reported)
                if "humidityRange" not in reported and self.sensor.current_range != HumidityRange.UNKNOWN:
                    initial_report = True
                    needs_report = True
            else:
                logger.info("No 'reported' state in shadow. Will report current device state.")
                initial_report = True
                needs_report = True

            if "desired" in state:
                desired = _as_object(state["desired"])
                if desired:
                    self.handle_shadow_delta(desired)
                    needs_report = True
                    applied_desired = True
                else:
                    logger.info("'desired' state is null or empty.")
        else:
            logger.info("Shadow has no 'state' object. Will report current device state.")
            initial_report = True
            needs_report = True

        if needs_report:
            logger.info(
                "Publishing report. Applied desired: %s | Initial report: %s",
                applied_desired,
                initial_report,
            )
            if self.publish_shadow_report():
                self.report_just_sent = True
            else:
                logger.warning("Report FAILED after processing GET_ACCEPTED.")
        else:
            logger.info("No report needed after processing GET_ACCEPTED.")
            self.last_telemetry_millis = self._millis()

    def _sync_reported(self, reported: Mapping[str, Any]) -> None:
        if "emotion" in reported:
            emotion = _as_text(reported["emotion"])
            if emotion != self.last_processed_emotion and emotion in KNOWN_EMOTIONS:
                self.last_processed_emotion = emotion
                if self.servo.current_angle != self._emotion_angle(emotion):
                    self._apply_emotion(emotion)
        if "servoAngle" in reported:
            angle = _as_int(reported["servoAngle"])
            if self.servo.current_angle != angle:
                self.servo.set_angle(angle)
        if "humidityRange" in reported:
            shadow_range = string_to_range(_as_text(reported["humidityRange"]))
            if shadow_range != HumidityRange.UNKNOWN and shadow_range != self.last_reported_range:
                self.last_reported_range = shadow_range

    def publish_shadow_report(self) -> bool:
        """Publish the device's reported state and clear desired; returns success."""
        if not self.mqtt.connected():
            logger.warning("MQTT not connected. Cannot publish shadow report.")
            return False
        if self.last_processed_emotion in KNOWN_EMOTIONS:
            emotion = self.last_processed_emotion
        else:
            emotion = self._emotion_for_angle(self.servo.current_angle)
        document = {
            "version": self.shadow_version,
            "state": {
                "reported": {
                    "rawSoilMoisture": self.sensor.raw_value,
                    "soilMoisturePercent": self.sensor.percentage,
                    "humidityRange": self.sensor.range_string(),
                    "servoAngle": self.servo.current_angle,
                    "emotion": emotion,
                },
                "desired": None,
            },
        }
        payload = json.dumps(document, separators=(",", ":"))
        if self.mqtt.publish(self.topics.update, payload):
            logger.info("Shadow report succeeded for version %d", self.shadow_version)
            return True
        logger.warning("Shadow report FAILED.")
        return False

    def handle_update_accepted(self, payload: Mapping[str, Any]) -> None:
        logger.info("Shadow update ACCEPTED; version is now %d", self.shadow_version)

    def handle_update_rejected(self, payload: Mapping[str, Any]) -> None:
        """On a version conflict ask for the current shadow to resynchronise."""
        logger.warning("Shadow update REJECTED: %s", _as_text(dict(payload)))
        if "code" not in payload:
            return
        if payload["code"] == 409:
            logger.info("Version conflict (409). Requesting current shadow.")
            if not self._request_shadow():
                logger.warning("Failed to publish GET request after 409.")
        else:
            logger.warning("Shadow update rejected with code: %d", _as_int(payload["code"]))