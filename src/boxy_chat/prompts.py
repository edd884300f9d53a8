"""Bot copy for the package-support flow."""

from __future__ import annotations

from typing import Tuple

from .models import TextInputSpec

GREETING = "Hi, I'm Boxy! Can I assist you with your lost package today?"

TRACKING_PROMPT = (
    "I can check what we know so far. Please enter your tracking number."
)
TRACKING_INPUT = TextInputSpec(
    label="Tracking number",
    placeholder="1Z999AA10123456784",
    hint="Use 8-22 letters or numbers.",
)
TRACKING_INVALID = (
    "That number doesn't look right. Tracking numbers are 8-22 letters or digits."
)
TRACKING_EXAMPLE_HINT = "Example: 1Z999AA10123456784"
TRACKING_ACCEPTED = "Thanks! Got it: {tracking_number}."

CARRIER_PROMPT = "Which carrier is moving this package?"
CARRIERS: Tuple[str, ...] = ("UPS", "USPS", "FedEx")
CARRIER_INVALID = "Please choose UPS, USPS, or FedEx."
CARRIER_ACCEPTED = "Thanks! Let me check {carrier} for you."

STATUS_LINE = "Status: {status}"
LAST_SCAN_LINE = "<small>Last scan: {last_scan}</small>"
ETA_LINE = "<small>ETA: {eta}</small>"

ALERTS_CONFIRMED = (
    "Alerts are on! You will get notifications for every scan and on delivery day."
)

EXPECTED_DATE_PROMPT = (
    "I can start an investigation. When was the package supposed to arrive? "
    "(MM/DD/YYYY)"
)
EXPECTED_DATE_INPUT = TextInputSpec(
    label="Expected delivery date",
    placeholder="03/22/2024",
    hint="Use MM/DD/YYYY and choose a past date.",
)
DATE_FORMAT_INVALID = "Please use the MM/DD/YYYY format."
DATE_NOT_REAL = "That date does not seem valid. Try again using MM/DD/YYYY."
DATE_EXAMPLE_HINT = "Example: 03/22/2024"
DATE_IN_FUTURE = "The date cannot be in the future."
DATE_PAST_HINT = "Choose a date on or before today."
DATE_ACCEPTED = "Thanks, noted {expected_date}. Starting an investigation ticket now."

INVESTIGATION_OPENED = (
    "Ticket {ticket} is open. Our team will review scans and reach out within "
    "24 hours."
)

DAMAGE_PROMPT = "I am so sorry to hear that. Can you describe the damage?"
DAMAGE_INPUT = TextInputSpec(
    label="Damage description",
    placeholder="e.g. Box crushed and item dented",
    hint="A short description helps us document the claim.",
)
DAMAGE_TOO_SHORT = "Could you share a few more details about the damage?"
DAMAGE_LENGTH_HINT = "Try adding at least 10 characters."
DAMAGE_ACCEPTED = "Thanks. I will file a claim right away."

CLAIM_FILED = (
    "Claim {ticket} is submitted. Please hang onto the packaging until our "
    "partner reviews photos."
)

DAMAGE_TIPS = """
    <p>While you wait:</p>
    <ul>
      <li>Photograph the damage from multiple angles.</li>
      <li>Keep original packaging for the carrier inspection.</li>
      <li>Store items in a dry place to prevent further issues.</li>
    </ul>
"""

OFF_TOPIC = (
    "I'm here for package problems. Would you like to keep troubleshooting or "
    "speak with an agent?"
)
FALLBACK = (
    "Let's keep things package related. Would you like to resume "
    "troubleshooting or talk with an agent?"
)
AGENT_TRANSFER = (
    "No worries, I am sending this conversation to a human teammate. Someone "
    "will join in under 2 minutes."
)
CLOSING = "Glad I could help! If something else pops up, just start again."

LABEL_NO_UPDATES = "No tracking updates"
LABEL_MISSING = "Package seems missing"
LABEL_DAMAGED = "Package arrived damaged"
LABEL_SOMETHING_ELSE = "Something else"
LABEL_ALERTS = "Set delivery alerts"
LABEL_AGENT = "Talk to an agent"
LABEL_ALL_SET = "All set"
LABEL_CARE_TIPS = "Care tips while you wait"
LABEL_KEEP_TROUBLESHOOTING = "Keep troubleshooting"
LABEL_RESUME = "Resume troubleshooting"
LABEL_START_OVER = "Start over"
LABEL_RESTART = "Restart"
