"""Sample stored collections for testing."""

# Medication taken twice a day for a week, as stored under "@medications"
SAMPLE_MEDICATION_TWICE_DAILY = {
    "id": "med-twice",
    "name": "Amoxicillin",
    "dosage": "500 mg",
    "times": ["09:00", "21:00"],
    "startDate": "2024-01-07T00:00:00.000Z",
    "duration": "7 days",
    "color": "#2196F3",
    "reminderEnabled": True,
    "currentSupply": 14,
    "totalSupply": 14,
    "refillAt": 4,
    "refillReminder": True,
}

# As-needed medication with no scheduled times
SAMPLE_MEDICATION_AS_NEEDED = {
    "id": "med-prn",
    "name": "Ibuprofen",
    "dosage": "200 mg",
    "times": [],
    "startDate": "2024-01-01",
    "duration": "Ongoing",
    "color": "#FF9800",
    "reminderEnabled": False,
    "currentSupply": 20,
    "totalSupply": 20,
    "refillAt": 5,
    "refillReminder": False,
    "lastRefillDate": "2024-01-01T10:00:00.000Z",
}

# Dose history as stored under "@dose_history"
SAMPLE_HISTORY = [
    {
        "id": "h1",
        "medicationId": "med-twice",
        "scheduledTime": "09:00",
        "timestamp": "2024-01-07T09:02:11.000Z",
        "taken": True,
    },
    {
        "id": "h2",
        "medicationId": "med-twice",
        "scheduledTime": "21:00",
        "timestamp": "2024-01-07T21:00:00.000Z",
        "taken": False,
    },
]
