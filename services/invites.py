#=======================================================================================================
# Invites: who brought whom, invite rewards, level bonuses and commission shares
#=======================================================================================================
import logging
import uuid
from datetime import datetime
from decimal import Decimal, ROUND_DOWN

from models import Agent, InviteLevel, InviteRecord, InviteReward, Transaction, User
from services.wallet import (
    TRANSACTIONS,
    USERS,
    NotFoundError,
    ValidationError,
    record_transaction,
)
from utils import mask_phone, paginate

logger = logging.getLogger(__name__)

AGENTS = "agents"
INVITE_CONFIG = "invite_config"
INVITE_RECORDS = "invite_records"
INVITE_REWARDS = "invite_rewards"

# Every collection an invite payout may touch
PAYOUT_COLLECTIONS = (AGENTS, USERS, TRANSACTIONS, INVITE_CONFIG, INVITE_RECORDS, INVITE_REWARDS)

CENT = Decimal("0.01")

DEFAULT_INVITE_CONFIG = {
    "levels": [
        {"level": 1, "name": "初级推广员", "reward": 10, "commission": 5, "requirement": 0,
         "description": "邀请1人即可获得10元奖励，下级任务5%佣金"},
        {"level": 2, "name": "中级推广员", "reward": 20, "commission": 8, "requirement": 10,
         "description": "邀请10人可获得20元奖励，下级任务8%佣金"},
        {"level": 3, "name": "高级推广员", "reward": 50, "commission": 12, "requirement": 50,
         "description": "邀请50人可获得50元奖励，下级任务12%佣金"},
        {"level": 4, "name": "金牌推广员", "reward": 100, "commission": 15, "requirement": 100,
         "description": "邀请100人可获得100元奖励，下级任务15%佣金"},
    ],
    "rules": [
        "1. 邀请好友注册并完成首次任务即可获得奖励",
        "2. 被邀请用户每完成一个任务，邀请人可获得相应佣金",
        "3. 邀请等级根据有效邀请人数自动升级",
        "4. 邀请奖励和佣金实时到账",
        "5. 严禁刷单、作弊等违规行为",
    ],
    "notice": "邀请好友一起赚钱，共享收益！邀请越多，奖励越丰厚！",
}


def level_for(valid_invites, levels):
    """Highest level whose requirement is met; the first level otherwise."""
    reached = [lv for lv in levels if valid_invites >= lv.requirement]
    if reached:
        return max(reached, key=lambda lv: lv.level)
    return levels[0]


class InviteService:

    def __init__(self, store):
        self.store = store

    # ==========================================================
    #                  CONFIGURATION
    # ==========================================================
    def config(self):
        with self.store.lock(INVITE_CONFIG):
            config = self.store.load_single(INVITE_CONFIG)
            if not config or not config.get("levels"):
                config = DEFAULT_INVITE_CONFIG
                self.store.save_single(INVITE_CONFIG, config)
                logger.info("Seeded default invite configuration")
        return {
            "levels": sorted(
                (InviteLevel.from_dict(lv) for lv in config["levels"]),
                key=lambda lv: lv.level,
            ),
            "rules": list(config.get("rules", [])),
            "notice": config.get("notice", ""),
        }

    def levels(self):
        return self.config()["levels"]

    @staticmethod
    def _valid_count(records, inviter_id):
        return sum(1 for r in records if r.inviter_id == inviter_id and r.is_valid)

    # ==========================================================
    #                  RECORDING
    # ==========================================================
    def record(self, inviter_id, invitee_id, invite_code):
        """Store a pending invite; an invitee is only ever invited once."""
        if inviter_id == invitee_id:
            logger.warning(f"Self-invite rejected for {invitee_id}")
            return None

        with self.store.lock(INVITE_RECORDS, INVITE_CONFIG):
            records = self.store.load(INVITE_RECORDS, InviteRecord)
            if any(r.invitee_id == invitee_id for r in records):
                logger.warning(f"User {invitee_id} already has an inviter")
                return None

            level = level_for(self._valid_count(records, inviter_id), self.levels())
            record = InviteRecord(
                id=str(uuid.uuid4()),
                inviter_id=inviter_id,
                invitee_id=invitee_id,
                invite_code=invite_code,
                reward=level.reward,
                is_valid=False,
                created_at=datetime.now(),
            )
            records.append(record)
            self.store.save(INVITE_RECORDS, records)

        logger.info(f"Invite {record.id}: {inviter_id} -> {invitee_id}")
        return record

    # ==========================================================
    #                  PAYOUTS
    # ==========================================================
    def validate(self, invite_id):
        with self.store.lock(*PAYOUT_COLLECTIONS):
            records = self.store.load(INVITE_RECORDS, InviteRecord)
            record = next((r for r in records if r.id == invite_id), None)
            if record is None:
                raise NotFoundError("Invite record not found")
            if record.is_valid:
                raise ValidationError("Invite is already valid")
            self._make_valid(record, records)
        return record

    def on_order_completed(self, invitee_id, commission, order_id):
        """
        Called with PAYOUT_COLLECTIONS held when an invitee's order completes.
        The first completion validates the invite; every completion pays the
        inviter their level's share of the commission. Returns the share paid.
        """
        records = self.store.load(INVITE_RECORDS, InviteRecord)
        record = next((r for r in records if r.invitee_id == invitee_id), None)
        if record is None:
            return Decimal("0")
        if not record.is_valid:
            self._make_valid(record, records)

        level = level_for(self._valid_count(records, record.inviter_id), self.levels())
        share = (Decimal(str(commission)) * level.commission / Decimal("100")).quantize(CENT, rounding=ROUND_DOWN)
        if share > 0:
            self._pay(record.inviter_id, share, "commission", order_id,
                      f"Commission share from order {order_id}")
        return share

    def _make_valid(self, record, records):
        levels = self.levels()
        before = level_for(self._valid_count(records, record.inviter_id), levels)

        record.is_valid = True
        record.validated_at = datetime.now()
        self.store.save(INVITE_RECORDS, records)

        self._pay(record.inviter_id, record.reward, "invite_reward", record.id,
                  f"Invite reward for {record.invitee_id}")

        after = level_for(self._valid_count(records, record.inviter_id), levels)
        if after.level > before.level and after.reward > before.reward:
            self._pay(record.inviter_id, after.reward - before.reward, "level_upgrade", record.id,
                      f"Invite level upgraded to {after.name}")
        logger.info(f"Invite {record.id} is now valid")

    def _pay(self, inviter_id, amount, reward_type, related_id, description):
        if amount <= 0:
            return

        agents = self.store.load(AGENTS, Agent)
        agent = next((a for a in agents if a.id == inviter_id), None)
        if agent is not None:
            agent.invite_earnings += amount
            agent.updated_at = datetime.now()
            self.store.save(AGENTS, agents)
        else:
            users = self.store.load(USERS, User)
            user = next((u for u in users if u.id == inviter_id), None)
            if user is None:
                logger.warning(f"Invite payout for unknown inviter {inviter_id} skipped")
                return
            user.current_balance += amount
            transactions = self.store.load(TRANSACTIONS, Transaction)
            record_transaction(transactions, user, reward_type, amount, related_id, description)
            self.store.save(USERS, users)
            self.store.save(TRANSACTIONS, transactions)

        rewards = self.store.load(INVITE_REWARDS, InviteReward)
        rewards.append(InviteReward(
            id=str(uuid.uuid4()),
            user_id=inviter_id,
            type=reward_type,
            amount=amount,
            description=description,
            related_id=related_id,
            created_at=datetime.now(),
        ))
        self.store.save(INVITE_REWARDS, rewards)
        logger.info(f"Paid {amount} {reward_type} to {inviter_id}")

    # ==========================================================
    #                  QUERIES
    # ==========================================================
    def info(self, inviter_id):
        records = [r for r in self.store.load(INVITE_RECORDS, InviteRecord) if r.inviter_id == inviter_id]
        rewards = [r for r in self.store.load(INVITE_REWARDS, InviteReward) if r.user_id == inviter_id]
        now = datetime.now()
        today = now.date()

        valid = sum(1 for r in records if r.is_valid)
        levels = self.levels()
        current = level_for(valid, levels)
        upcoming = next((lv for lv in levels if lv.level == current.level + 1), None)

        next_level = None
        if upcoming is not None:
            next_level = upcoming.to_dict()
            next_level.update({"progress": valid, "target": upcoming.requirement})

        return {
            "stats": {
                "totalInvites": len(records),
                "todayInvites": sum(1 for r in records if r.created_at and r.created_at.date() == today),
                "validInvites": valid,
                "totalReward": float(sum((r.amount for r in rewards), Decimal("0"))),
                "todayReward": float(sum(
                    (r.amount for r in rewards if r.created_at and r.created_at.date() == today),
                    Decimal("0"),
                )),
                "thisMonthReward": float(sum(
                    (r.amount for r in rewards
                     if r.created_at and (r.created_at.year, r.created_at.month) == (now.year, now.month)),
                    Decimal("0"),
                )),
            },
            "level": {"current": current.to_dict(), "next": next_level},
        }

    def records(self, inviter_id, page=1, page_size=20):
        records = sorted(
            (r for r in self.store.load(INVITE_RECORDS, InviteRecord) if r.inviter_id == inviter_id),
            key=lambda r: r.created_at or datetime.min,
            reverse=True,
        )
        page_items, total = paginate(records, page, page_size)
        users = {u.id: u for u in self.store.load(USERS, User)}

        items = []
        for r in page_items:
            invitee = users.get(r.invitee_id)
            item = r.to_dict()
            item["inviteeName"] = invitee.nickname if invitee else "Unknown user"
            item["inviteePhone"] = mask_phone(invitee.phone) if invitee else ""
            item["status"] = "valid" if r.is_valid else "pending"
            items.append(item)
        return items, total

    def rewards(self, user_id, page=1, page_size=20):
        rewards = sorted(
            (r for r in self.store.load(INVITE_REWARDS, InviteReward) if r.user_id == user_id),
            key=lambda r: r.created_at or datetime.min,
            reverse=True,
        )
        return paginate(rewards, page, page_size)

    def leaderboard(self, page=1, page_size=50):
        totals = {}
        for r in self.store.load(INVITE_RECORDS, InviteRecord):
            if not r.is_valid:
                continue
            count, reward = totals.get(r.inviter_id, (0, Decimal("0")))
            totals[r.inviter_id] = (count + 1, reward + r.reward)

        ranked = sorted(totals.items(), key=lambda item: item[1][0], reverse=True)
        page_items, total = paginate(ranked, page, page_size)

        names = {a.id: a.nick_name for a in self.store.load(AGENTS, Agent)}
        names.update({u.id: u.nickname for u in self.store.load(USERS, User)})
        offset = (max(page, 1) - 1) * page_size
        entries = [
            {
                "rank": offset + i + 1,
                "userId": inviter_id,
                "username": names.get(inviter_id, "Unknown user"),
                "inviteCount": count,
                "totalReward": float(reward),
            }
            for i, (inviter_id, (count, reward)) in enumerate(page_items)
        ]
        return entries, total
