from device_monitor.services.normalize import normalize_report
from device_monitor.utils.logger import logger
from device_monitor.utils.timeutil import format_timestamp


def ingest_report(data, client_ip, device_store, notifier):
    """
    Normalize one status report, store it over any previous record for the
    same device and publish a ``device_update`` event.

    Raises ``PersistenceError`` when the store cannot be written; nothing is
    published in that case.
    """
    record = normalize_report(data)

    now = device_store.clock()
    record["lastUpdate"] = format_timestamp(now, device_store.tz)
    record["clientIP"] = client_ip

    device_id = record["deviceId"]
    published = []

    # Publishing under the store lock keeps the slot in write order with a matching count
    def publish(total):
        published.append(notifier.publish({
            "type": "device_update",
            "deviceId": device_id,
            "device": record,
            "timestamp": now,
            "totalDevices": total,
        }))

    total = device_store.put(device_id, record, on_stored=publish)

    logger.info(f"📱 Status from {device_id} ({client_ip}): battery {record['batteryLevel']}%, {total} device(s) online")
    return record, published[0]
