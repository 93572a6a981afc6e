#!/usr/bin/env python3
"""
Smoke run of the clinic API against a live server.

Expects the demo hierarchy from ``python manage.py seed_demo`` and walks
one full visit: staff logins, dashboards, booking a new patient, uploading
sensor data, recording the test and reading it back through the patient
portal.  Exits non-zero when any step fails.

    KNEELAB_BASE_URL=http://127.0.0.1:8000 python smoke_api.py
"""
import os
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

import requests

BASE_URL = os.getenv("KNEELAB_BASE_URL", "http://127.0.0.1:8000").rstrip("/")
PASSWORD = os.getenv("KNEELAB_DEMO_PASSWORD", "123456")

DEMO_USERS = {
    "super_admin": ("/api/super-admin/login", "super@kneelab.local"),
    "hospital_admin": ("/api/hospital-admin/login", "centre@kneelab.local"),
    "doctor": ("/api/doctor/login", "doctor@kneelab.local"),
}


@dataclass
class StepResult:
    success: bool
    endpoint: str
    method: str
    status_code: int
    response_time: float
    error_message: str = ""
    description: str = ""


class ApiSmokeRunner:
    def __init__(self, base_url: str = BASE_URL):
        self.base_url = base_url
        self.session = requests.Session()
        self.tokens: Dict[str, str] = {}
        self.results: List[StepResult] = []

    def call(self, method: str, endpoint: str, *, role: Optional[str] = None, data: Optional[dict] = None,
             params: Optional[dict] = None, expected_status: int = 200, description: str = "") -> Optional[dict]:
        headers = {"Content-Type": "application/json"}
        if role:
            headers["Authorization"] = f"Token {self.tokens[role]}"
        start_time = time.time()
        try:
            response = self.session.request(method, f"{self.base_url}{endpoint}", json=data, params=params,
                                            headers=headers, timeout=10)
        except requests.RequestException as e:
            self._record(StepResult(False, endpoint, method, 0, time.time() - start_time, str(e), description))
            return None
        response_time = time.time() - start_time
        ok = response.status_code == expected_status
        self._record(StepResult(ok, endpoint, method, response.status_code, response_time,
                                "" if ok else response.text[:200], description))
        if not ok:
            return None
        try:
            return response.json()
        except ValueError:
            return {}

    def _record(self, result: StepResult) -> None:
        self.results.append(result)
        mark = "ok  " if result.success else "FAIL"
        print(f"[{mark}] {result.method} {result.endpoint} {result.status_code} ({result.response_time:.2f}s) "
              f"{result.description}")
        if result.error_message:
            print(f"       {result.error_message}")

    def login_all(self) -> bool:
        for role, (endpoint, email) in DEMO_USERS.items():
            data = self.call("POST", endpoint, data={"email": email, "password": PASSWORD},
                             description=f"{role} login")
            if not data:
                return False
            self.tokens[role] = data["token"]
        return True

    def run(self) -> bool:
        self.call("GET", "/healthz", description="health check")
        if not self.login_all():
            return False

        self.call("GET", "/api/super-admin/dashboard", role="super_admin", description="super admin dashboard")
        centre = self.call("GET", "/api/hospital-admin/dashboard", role="hospital_admin",
                           description="hospital admin dashboard")
        if not centre or not centre["doctors"]:
            return False
        doctor_id = centre["doctors"][0]["id"]

        appointment = self.call("POST", "/api/hospital-admin/appointments", role="hospital_admin", expected_status=201,
                                description="book new patient", data={
                                    "doctorId": doctor_id,
                                    "appointmentDate": datetime.now(timezone.utc).isoformat(),
                                    "name": "Smoke Patient", "age": 47, "sex": "Male", "phoneNumber": "0700000000",
                                    "kneeCondition": "Meniscus tear", "rehabDuration": "4 weeks",
                                })
        if not appointment:
            return False
        code = appointment["patientCode"]

        puck_id = f"SMOKE-{int(time.time())}"
        self.call("POST", "/api/test/raw-data", role="doctor", expected_status=201, description="upload raw data",
                  data={"puckId": puck_id, "rangeOfMotion": 104.0, "linearDisplacement": 3.4,
                        "angularDisplacement": 8.1})
        recorded = self.call("POST", "/api/doctor/tests", role="doctor", expected_status=201,
                             description="record test from raw data",
                             data={"appointmentId": appointment["id"], "puckId": puck_id, "legTested": "Left",
                                   "doctorNotes": "smoke run"})
        self.call("GET", "/api/doctor/dashboard", role="doctor", description="doctor dashboard")

        self.call("GET", f"/api/patient/profile/{code}", description="patient profile")
        self.call("GET", f"/api/patient/tests/{code}", description="patient tests")
        if recorded:
            self.call("GET", f"/api/patient/test-report/{recorded['test']['id']}", params={"patientCode": code},
                      description="patient test report")
        return all(r.success for r in self.results)

    def summary(self) -> None:
        failed = [r for r in self.results if not r.success]
        print(f"\n{len(self.results) - len(failed)}/{len(self.results)} steps passed")
        for r in failed:
            print(f"  - {r.method} {r.endpoint}: {r.status_code} {r.description}")


def main() -> int:
    runner = ApiSmokeRunner()
    ok = runner.run()
    runner.summary()
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
