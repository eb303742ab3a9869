"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test double booking
  locust -f locustfile.py --tags throughput   # Test availability cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests

Raise RATE_LIMIT_MAX_REQUESTS on the server first, or every user shares
one IP budget and most submissions come back 429.
"""

import random
from datetime import datetime, timezone, timedelta
from locust import HttpUser, task, between, tag, events

# Every ConcurrencyUser fights for this one studio slot
CONTESTED_DATE = (datetime.now(timezone.utc) + timedelta(days=60)).replace(
    hour=12, minute=0, second=0, microsecond=0
)
HOURS = [f"{h:02d}:00" for h in range(9, 19)]


def random_email():
    return f"load_{random.randint(10000, 99999)}@test.com"


def booking_payload(when, start, end, resource_type="studio"):
    return {
        "name": "Load Tester",
        "email": random_email(),
        "phone": "+15551234567",
        "type": resource_type,
        "date": when.isoformat(),
        "start_time": start,
        "end_time": end,
    }


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "="*60)
    print(f"Contested slot: studio {CONTESTED_DATE.date()} 10:00-12:00")
    print("="*60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 100 users -> one studio slot

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM bookings
      WHERE resource_type = 'studio' AND date = '<contested date>'
        AND status IN ('pending', 'confirmed');
    Should be exactly 1
    """
    wait_time = between(0, 0.1)

    @tag("concurrency")
    @task
    def book_contested_slot(self):
        # Overlapping but not identical ranges exercise the interval check too
        start, end = random.choice([("10:00", "12:00"), ("11:00", "13:00"), ("09:00", "11:00")])
        with self.client.post("/api/bookings",
            json=booking_payload(CONTESTED_DATE, start, end),
            name="/api/bookings [contested]",
            catch_response=True
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()  # 409 expected: slot taken
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - availability cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again

    Compare avg response time, requests/sec, P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def check_availability(self):
        day = (datetime.now(timezone.utc) + timedelta(days=random.randint(1, 14))).date()
        resource_type = random.choice(["studio", "coworking"])
        self.client.get(f"/api/bookings/availability?date={day}&type={resource_type}",
            name="/api/bookings/availability [cached]")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def past_date(self):
        past = datetime.now(timezone.utc) - timedelta(days=3)
        with self.client.post("/api/bookings", json=booking_payload(past, "10:00", "11:00"),
                              catch_response=True) as resp:
            self._expect(resp, [400, 429])

    @tag("edge")
    @task
    def end_before_start(self):
        with self.client.post("/api/bookings", json=booking_payload(CONTESTED_DATE, "14:00", "13:00"),
                              catch_response=True) as resp:
            self._expect(resp, [400, 429])

    @tag("edge")
    @task
    def outside_operating_hours(self):
        with self.client.post("/api/bookings", json=booking_payload(CONTESTED_DATE, "07:00", "08:00"),
                              catch_response=True) as resp:
            self._expect(resp, [400, 429])

    @tag("edge")
    @task
    def unknown_resource_type(self):
        payload = booking_payload(CONTESTED_DATE, "10:00", "11:00", resource_type="boardroom")
        with self.client.post("/api/bookings", json=payload, catch_response=True) as resp:
            self._expect(resp, [400, 429])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/bookings", data="not json at all",
                              headers={"Content-Type": "application/json"},
                              catch_response=True) as resp:
            self._expect(resp, [400, 429])

    @tag("edge")
    @task
    def admin_without_auth(self):
        with self.client.get("/api/bookings", catch_response=True) as resp:
            self._expect(resp, [401])


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Visitors mostly check availability, then occasionally book a free slot.
    """
    wait_time = between(1, 3)

    @task(20)
    def browse_and_book(self):
        when = datetime.now(timezone.utc) + timedelta(days=random.randint(1, 30))
        resource_type = random.choice(["studio", "coworking"])
        resp = self.client.get(
            f"/api/bookings/availability?date={when.date()}&type={resource_type}",
            name="/api/bookings/availability",
        )
        if resp.status_code != 200 or random.random() > 0.2:
            return
        free = resp.json().get("availableSlots", [])
        if not free:
            return
        start = random.choice(free)
        end = HOURS[HOURS.index(start) + 1] if start in HOURS[:-1] else None
        if end:
            self.client.post("/api/bookings",
                json=booking_payload(when, start, end, resource_type),
                name="/api/bookings")
