# plantshadow

`plantshadow` keeps a potted plant's mood in step with a cloud device shadow.
A soil-moisture probe is read and sorted into a humidity range, a servo shows
an emotion (`FELIZ`, `TRISTE` or `NEUTRAL`), and the device reports its state
to, and takes desired changes from, an MQTT device shadow on the
`$aws/things/<thing>/shadow/...` topics.

## Modules

- `plantshadow.config`
  - `DeviceConfig`: a frozen dataclass with the Wi-Fi settings, the MQTT
    endpoint and thing name, the TLS file paths (`root_ca`,
    `device_certificate`, `device_private_key`), the soil calibration values,
    the happy/sad/neutral servo angles, and `port` (default 8883),
    `soil_moisture_pin` (32) and `servo_pin` (18). Its `topics` property gives
    the shadow topics of the configured thing.
  - `ShadowTopics.for_thing(thing_name)`: builds the `update`, `delta`, `get`,
    `get_accepted`, `get_rejected`, `update_accepted` and `update_rejected`
    topics. An empty thing name raises `ValueError`. The `subscriptions`
    property lists the five topics the device listens on.
- `plantshadow.moisture`
  - `HumidityRange`: `UNKNOWN`, `VERY_DRY`, `DRY`, `OPTIMAL`, `WET`, `VERY_WET`.
  - `range_to_string(humidity_range)` / `string_to_range(text)`: convert
    between ranges and their shadow names `MUY_SECO`, `SECO`, `OPTIMO`,
    `HUMEDO`, `MUY_HUMEDO`; anything else is `DESCONOCIDO` / `UNKNOWN`.
  - `MoistureSensor(read_raw, dry_value, wet_value)`: `update()` takes a
    reading, maps it linearly from the dry value (0 %) to the wet value
    (100 %), clamps it to 0–100 and sets `raw_value`, `percentage` and
    `current_range` (up to 20 % very dry, up to 40 % dry, up to 70 % optimal,
    up to 90 % wet, above that very wet). `range_string()` returns the shadow
    name of the current range. Equal dry and wet values raise `ValueError`.
- `plantshadow.servo`
  - `EmotionalServo(write_angle, happy_angle, sad_angle, neutral_angle)`:
    starts at the neutral angle; `set_angle(angle)` clamps to 0–180 and
    calls `write_angle` once `attach()` has been called. `set_happy()`,
    `set_sad()` and `set_neutral()` move to the named angles.
- `plantshadow.mqtt`
  - `MQTTManager(host, port, client_id, client=None)`: wraps a paho-mqtt
    client (a new one is created when `client` is `None`).
    `set_certificates(ca_cert, client_cert, private_key)` sets up mutual TLS
    from file paths. `connect()` waits up to `connect_timeout` seconds for the
    broker and resubscribes every registered topic; `subscribe(topic, callback)`
    registers a callback; `publish(topic, message, retained=False)` returns
    whether the client accepted the message; `update()` services the
    connection once; `dispatch(topic, payload)` hands a message to the first
    callback for its topic and returns whether one was found.
- `plantshadow.app`
  - `AppLogic(config, mqtt, sensor, servo, clock=None)`: `setup()` attaches and
    centres the servo, sets the certificates, subscribes to the shadow topics,
    connects and requests the shadow. `loop()` reconnects (at most every five
    seconds) or services MQTT, reads the sensor, and reports a humidity range
    change at most once every ten seconds, once a shadow version is known.
    Incoming delta and `get/accepted` documents are applied to the servo and
    answered with a report that carries the last seen shadow version and
    clears `desired`; a 409 on `update/rejected` triggers a new shadow request.
    `clock` returns milliseconds; by default a monotonic clock is used, and
    when `mqtt` is `None` an `MQTTManager` is built from the config.

## Example

Hardware is injected as plain functions:

```python
from plantshadow.moisture import MoistureSensor
from plantshadow.servo import EmotionalServo

sensor = MoistureSensor(read_raw=lambda: 2100, dry_value=3000, wet_value=1200)
sensor.update()
print(sensor.percentage, sensor.range_string())   # 50 OPTIMO

servo = EmotionalServo(
    write_angle=lambda angle: None,
    happy_angle=150,
    sad_angle=30,
    neutral_angle=90,
)
servo.attach()
servo.set_happy()
```

Running the device logic:

```python
import time

from plantshadow.app import AppLogic
from plantshadow.config import DeviceConfig

config = DeviceConfig(...)   # endpoint, thing name, TLS file paths, calibration, angles
app = AppLogic(config, None, sensor, servo)
app.setup()
while True:
    app.loop()
    time.sleep(0.1)
```

Progress and errors are written through the standard `logging` module.

## What it does not do

- It does not join a Wi-Fi network or synchronise the system clock; the host
  must already be online with a correct time for TLS to work.
- It does not read pins or drive a servo itself: the `read_raw` and
  `write_angle` functions must do that. The pin numbers in `DeviceConfig` are
  only carried along.
- There is no command-line program; the loop above is up to the caller.

## Tests

The tests use pytest and need no broker or hardware:

```
pip install -e .[test]
pytest
```