"""Moving currency between a player and their gang's bank."""

import logging

from gangwars.crud import CreateData
from gangwars.domain.gang_rules import Role, parse_role, within_withdraw_cap
from gangwars.entity_lock_manager import gang_key, player_key
from gangwars.errors import (
    InsufficientFundsError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from gangwars.models.dc_models import (
    DepositResultModel,
    TransactionKindModel,
    WithdrawResultModel,
)
from gangwars.services.base import BaseService


def _check_amount(amount) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError("Invalid amount")
    return amount


class EconomyService(BaseService):
    async def deposit(self, player_id: str, amount: int) -> DepositResultModel:
        """Move currency from a player into their gang's bank

        Debit and credit happen in one transaction with both entities locked.

        Args:
            player_id (str): The depositing member
            amount (int): Positive amount to move

        Returns:
            DepositResultModel: New balances on both sides
        """
        amount = _check_amount(amount)
        gang_id = await self.peek_gang_id(player_id)

        async with self.locks.hold(player_key(player_id), gang_key(gang_id)):
            async with self.transaction("deposit") as session:
                player = await self.require_player(player_id, session)
                if not player.gang_id:
                    raise ValidationError("Not in a gang")
                self.ensure_same_gang(player, gang_id)
                if player.currency < amount:
                    raise InsufficientFundsError("Insufficient funds")
                gang = await self.require_gang(gang_id, session)

                player.currency -= amount
                gang.bank += amount
                CreateData.add_transaction(
                    session,
                    kind=TransactionKindModel.deposit.value,
                    amount=amount,
                    created_at=self.clock(),
                    player_id=player_id,
                    gang_id=gang_id,
                )

                logging.info(f"Player {player_id} deposited {amount} into {gang_id}")
                return DepositResultModel(
                    player_id=player_id,
                    gang_id=gang_id,
                    amount=amount,
                    player_currency=player.currency,
                    gang_bank=gang.bank,
                )

    async def withdraw(self, player_id: str, amount: int) -> WithdrawResultModel:
        """Take currency out of the gang bank

        Grunts may never withdraw, Lieutenants up to 10% of the bank per call
        and the God Father up to the whole bank. The withdrawn amount leaves the
        bank and is not added to the player's balance.

        Args:
            player_id (str): The withdrawing member
            amount (int): Positive amount to take

        Returns:
            WithdrawResultModel: New bank balance and the unchanged player balance
        """
        amount = _check_amount(amount)
        gang_id = await self.peek_gang_id(player_id)

        async with self.locks.hold(player_key(player_id), gang_key(gang_id)):
            async with self.transaction("withdraw") as session:
                player = await self.require_player(player_id, session)
                if not player.gang_id:
                    raise ValidationError("Not in a gang")
                self.ensure_same_gang(player, gang_id)
                gang = await self.require_gang(gang_id, session)

                role = parse_role(player.role)
                if role == Role.grunt:
                    logging.warning(f"Grunt {player_id} tried to withdraw {amount} from {gang_id}")
                    raise PermissionDeniedError("Grunts cannot withdraw")
                if amount > gang.bank:
                    raise InsufficientFundsError("Insufficient bank funds")
                if not within_withdraw_cap(role, amount, gang.bank):
                    raise PermissionDeniedError("Exceeds withdrawal limit")

                gang.bank -= amount
                CreateData.add_transaction(
                    session,
                    kind=TransactionKindModel.withdraw.value,
                    amount=amount,
                    created_at=self.clock(),
                    player_id=player_id,
                    gang_id=gang_id,
                )

                logging.info(f"Player {player_id} ({role.value}) withdrew {amount} from {gang_id}")
                return WithdrawResultModel(
                    player_id=player_id,
                    gang_id=gang_id,
                    amount=amount,
                    player_currency=player.currency,
                    gang_bank=gang.bank,
                )
