"""
Integration tests for the FundingPool service.

End-to-end scenarios across registry, ledger and release engine,
plus atomicity under concurrent callers.
"""

import threading

import pytest

from fundpool.core.collaborators import BlockClock, RecordingTransferGateway, TransferGateway, TransferRecord
from fundpool.core.config import PoolConfig
from fundpool.core.errors import EscrowError
from fundpool.core.pool import FundingPool

ADMIN = "ST1TEST"
AUTHORITY = "ST2AUTH"
RECIPIENT = "ST2RECIP"
DONOR = "ST5DONOR"


@pytest.fixture
def pool():
    return FundingPool(PoolConfig(administrator=ADMIN, authority_principal=AUTHORITY))


class TestHappyPath:
    """Create, fund, approve, release."""

    def test_full_lifecycle(self, pool):
        """Fee 5% on a 1000 release."""
        campaign_id, err = pool.create_campaign(DONOR, "Campaign1", "Desc1", 1000, RECIPIENT)
        assert (campaign_id, err) == (0, None)
        campaign = pool.get_campaign(0)
        assert campaign.balance == 0 and not campaign.locked

        assert pool.deposit(DONOR, 0, 1000) == (1000, None)
        assert pool.get_total_funds() == 1000

        assert pool.approve_release(ADMIN, 0, 1, 1000) == (True, None)
        approval = pool.get_approval(0, 1)
        assert approval.amount == 1000 and approval.approved

        net, err = pool.release(DONOR, 0, 1)

        assert err is None
        assert net == 950
        campaign = pool.get_campaign(0)
        assert campaign.balance == 0
        assert campaign.locked
        assert pool.get_total_funds() == 0
        assert pool.gateway.transfers == [
            TransferRecord(1000, DONOR, "contract"),
            TransferRecord(50, "contract", AUTHORITY),
            TransferRecord(950, "contract", RECIPIENT),
        ]

    def test_default_pool_settles(self):
        """A pool built from defaults pays the fee to the default authority."""
        pool = FundingPool()
        pool.create_campaign(DONOR, "Campaign1", "Desc1", 1000, RECIPIENT)
        pool.deposit(DONOR, 0, 1000)
        pool.approve_release(pool.administrator, 0, 1, 1000)

        assert pool.release(DONOR, 0, 1) == (950, None)
        assert pool.gateway.transfers[-2] == TransferRecord(50, "contract", "ST2AUTHORITY")

    def test_release_blocks_further_deposits(self, pool):
        """Every release locks the campaign."""
        pool.create_campaign(DONOR, "C", "D", 1000, RECIPIENT)
        pool.deposit(DONOR, 0, 1000)
        pool.approve_release(AUTHORITY, 0, 1, 200)
        pool.release(DONOR, 0, 1)

        assert pool.deposit(DONOR, 0, 10) == (None, EscrowError.ALREADY_LOCKED)

        assert pool.unlock(ADMIN, 0) == (True, None)
        assert pool.deposit(DONOR, 0, 10) == (810, None)

    def test_stats(self, pool):
        """Stats aggregate all subsystems."""
        pool.create_campaign(DONOR, "C", "D", 1000, RECIPIENT)
        pool.deposit(DONOR, 0, 1000)
        pool.approve_release(ADMIN, 0, 1, 500)
        pool.release(DONOR, 0, 1)
        pool.emergency_withdraw(ADMIN, 0, 100)

        stats = pool.stats()

        assert stats["campaigns"] == 1
        assert stats["locked_campaigns"] == 1
        assert stats["approvals"] == 1
        assert stats["releases"] == 1
        assert stats["total_funds"] == 400
        assert stats["fees_collected"] == 25
        assert stats["net_paid_out"] == 475
        assert stats["emergency_withdrawn"] == 100
        assert len(pool.releases) == 1


class TestFailureScenarios:
    """Failures leave state untouched."""

    def test_min_release_stores_nothing(self, pool):
        pool.create_campaign(DONOR, "C", "D", 1000, RECIPIENT)
        pool.deposit(DONOR, 0, 1000)

        assert pool.approve_release(ADMIN, 0, 1, 99) == (False, EscrowError.INVALID_MIN_RELEASE)
        assert pool.get_approval(0, 1) is None

    def test_fee_rate_unchanged_on_reject(self, pool):
        assert pool.set_fee_rate(ADMIN, 15) == (False, EscrowError.INVALID_FEE_RATE)
        assert pool.get_config().platform_fee_rate == 5

    def test_emergency_overdraw(self, pool):
        pool.create_campaign(DONOR, "C", "D", 1000, RECIPIENT)
        pool.deposit(DONOR, 0, 400)
        transfers_before = list(pool.gateway.transfers)

        assert pool.emergency_withdraw(ADMIN, 0, 500) == (None, EscrowError.INSUFFICIENT_FUNDS)
        assert pool.get_campaign(0).balance == 400
        assert pool.get_total_funds() == 400
        assert pool.gateway.transfers == transfers_before

    def test_failing_gateway_leaves_ledger(self):
        """A gateway error during deposit propagates before any write."""

        class BrokenGateway(TransferGateway):
            def transfer(self, amount, sender, recipient):
                raise RuntimeError("ledger offline")

        pool = FundingPool(PoolConfig(administrator=ADMIN), gateway=BrokenGateway())
        pool.create_campaign(DONOR, "C", "D", 1000, RECIPIENT)

        with pytest.raises(RuntimeError):
            pool.deposit(DONOR, 0, 100)

        assert pool.get_campaign(0).balance == 0
        assert pool.get_total_funds() == 0

    def test_failed_payout_refunds_fee(self):
        """A gateway error on the net payout returns the fee and leaves the ledger."""

        class PayoutFailsOnce(RecordingTransferGateway):
            def __init__(self):
                super().__init__()
                self.fail_next_payout = True

            def transfer(self, amount, sender, recipient):
                if recipient == RECIPIENT and self.fail_next_payout:
                    self.fail_next_payout = False
                    raise RuntimeError("payout rejected")
                super().transfer(amount, sender, recipient)

        gateway = PayoutFailsOnce()
        pool = FundingPool(PoolConfig(administrator=ADMIN, authority_principal=AUTHORITY), gateway=gateway)
        pool.create_campaign(DONOR, "C", "D", 1000, RECIPIENT)
        pool.deposit(DONOR, 0, 1000)
        pool.approve_release(ADMIN, 0, 1, 1000)

        with pytest.raises(RuntimeError):
            pool.release(DONOR, 0, 1)

        assert gateway.balance_of(AUTHORITY) == 0
        assert gateway.transfers[-2:] == [
            TransferRecord(50, "contract", AUTHORITY),
            TransferRecord(50, AUTHORITY, "contract"),
        ]
        campaign = pool.get_campaign(0)
        assert campaign.balance == 1000
        assert not campaign.locked
        assert pool.get_total_funds() == 1000
        assert pool.releases == []

        # retry settles normally with a single fee
        assert pool.release(DONOR, 0, 1) == (950, None)
        assert gateway.balance_of(AUTHORITY) == 50
        assert gateway.balance_of(RECIPIENT) == 950


class TestQueries:
    """Queries are side-effect free."""

    def test_unknown_records(self, pool):
        assert pool.get_campaign(0) is None
        assert pool.get_metadata(0) is None
        assert pool.get_approval(0, 1) is None

    def test_copies_are_detached(self, pool):
        """Mutating a returned record does not touch the pool."""
        pool.create_campaign(DONOR, "C", "D", 1000, RECIPIENT)
        campaign = pool.get_campaign(0)
        campaign.balance = 999_999

        assert pool.get_campaign(0).balance == 0
        assert pool.get_total_funds() == 0

    def test_timestamps_follow_clock(self):
        clock = BlockClock()
        pool = FundingPool(PoolConfig(administrator=ADMIN), clock=clock)
        pool.create_campaign(DONOR, "C", "D", 1000, RECIPIENT)
        clock.advance(12)
        pool.lock(ADMIN, 0)

        assert pool.get_campaign(0).last_updated_at == 12


class TestConcurrency:
    """Per-call atomicity with shared callers."""

    def test_parallel_deposits_keep_totals(self, pool):
        """Total funds equals the sum of balances after racing deposits."""
        for i in range(4):
            pool.create_campaign(DONOR, f"C{i}", "D", 1000, RECIPIENT)

        def worker(campaign_id):
            for _ in range(250):
                pool.deposit(DONOR, campaign_id, 1)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(4) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        balances = [pool.get_campaign(i).balance for i in range(4)]
        assert balances == [500, 500, 500, 500]
        assert pool.get_total_funds() == sum(balances)
        assert len(pool.gateway.transfers) == 2000

    def test_parallel_releases_never_overdraw(self, pool):
        """Racing releases of one approval stop at the balance."""
        pool.create_campaign(DONOR, "C", "D", 1000, RECIPIENT)
        pool.deposit(DONOR, 0, 1000)
        pool.approve_release(ADMIN, 0, 1, 300)
        results = []

        def worker():
            results.append(pool.release(DONOR, 0, 1))

        threads = [threading.Thread(target=worker) for _ in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        successes = [r for r in results if r[1] is None]
        assert len(successes) == 3
        assert pool.get_campaign(0).balance == 100
        assert pool.get_total_funds() == 100


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
