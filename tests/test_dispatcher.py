import asyncio
from collections import defaultdict

from app.core.exceptions import ExternalServiceError
from app.flow.dispatcher import dispatch_message
from app.schemas.webhook import UnifiedMessage
from app.services.session_service import UserLocks
from utils.constants import GENERIC_ERROR_MESSAGE


def message(chat_id="U1", text="hi", message_id="1"):
    return UnifiedMessage(chat_id=chat_id, text=text, message_id=message_id)


class EchoMachine:
    """Replies with the text and records how many calls overlap per user."""

    def __init__(self, delay=0.01):
        self.delay = delay
        self.running = defaultdict(int)
        self.max_per_user = defaultdict(int)
        self.max_total = 0

    async def advance(self, user_id, text):
        self.running[user_id] += 1
        self.max_per_user[user_id] = max(self.max_per_user[user_id], self.running[user_id])
        self.max_total = max(self.max_total, sum(self.running.values()))
        await asyncio.sleep(self.delay)
        self.running[user_id] -= 1
        return f"echo: {text}"


class FailingMachine:
    def __init__(self, error):
        self.error = error

    async def advance(self, user_id, text):
        raise self.error


async def test_reply_is_sent(notifier):
    result = await dispatch_message(message(text="ping"), machine=EchoMachine(), sender=notifier, locks=UserLocks())

    assert result == {"status": "success"}
    assert notifier.sent == [("U1", "echo: ping")]


async def test_failure_becomes_generic_apology(notifier):
    machine = FailingMachine(ExternalServiceError("CAI said 503 with secret token abc"))

    result = await dispatch_message(message(), machine=machine, sender=notifier, locks=UserLocks())

    assert result == {"status": "error", "error": "ExternalServiceError"}
    assert notifier.sent == [("U1", GENERIC_ERROR_MESSAGE)]


async def test_unexpected_exception_becomes_generic_apology(notifier):
    result = await dispatch_message(
        message(), machine=FailingMachine(KeyError("kind")), sender=notifier, locks=UserLocks()
    )

    assert result["error"] == "KeyError"
    assert notifier.sent == [("U1", GENERIC_ERROR_MESSAGE)]


async def test_timeout_becomes_generic_apology(notifier):
    result = await dispatch_message(
        message(), machine=EchoMachine(delay=1), sender=notifier, locks=UserLocks(), timeout=0.01
    )

    assert result == {"status": "error", "error": "timeout"}
    assert notifier.sent == [("U1", GENERIC_ERROR_MESSAGE)]


async def test_failed_delivery_is_not_an_error(notifier):
    notifier.fail = True

    result = await dispatch_message(message(), machine=EchoMachine(), sender=notifier, locks=UserLocks())

    assert result == {"status": "success"}


async def test_same_user_is_serialized(notifier):
    machine = EchoMachine()
    locks = UserLocks()

    await asyncio.gather(*[
        dispatch_message(message(text=str(i), message_id=str(i)), machine=machine, sender=notifier, locks=locks)
        for i in range(3)
    ])

    assert machine.max_per_user["U1"] == 1
    assert [text for _, text in notifier.sent] == ["echo: 0", "echo: 1", "echo: 2"]
    assert len(locks) == 0


async def test_different_users_run_concurrently(notifier):
    machine = EchoMachine(delay=0.05)
    locks = UserLocks()

    await asyncio.gather(
        dispatch_message(message(chat_id="U1"), machine=machine, sender=notifier, locks=locks),
        dispatch_message(message(chat_id="U2"), machine=machine, sender=notifier, locks=locks),
    )

    assert machine.max_total == 2
