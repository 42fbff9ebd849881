import argparse
import asyncio

from api.w3.errors import WalletGatewayError
from api.w3.gateway import ChainGateway
from lib.config import Config
from lib.depcont import DepContainer
from lib.kv_store import kv_store_from_config
from lib.logs import WithLogger, setup_logs_from_config
from lib.money import short_address


class App(WithLogger):
    def __init__(self, config_name=None, log_level=None):
        super().__init__()
        d = self.deps = DepContainer()
        d.cfg = Config(name=config_name)
        log_level = setup_logs_from_config(d.cfg, log_level)
        self.logger.info(f'Starting the wallet gateway, log level: {log_level}.')

    async def prepare(self):
        d = self.deps
        d.loop = asyncio.get_running_loop()
        d.make_http_session()
        d.kv_store = kv_store_from_config(d.cfg)
        d.gateway = ChainGateway(d.cfg, session=d.session, store=d.kv_store)

    async def __aenter__(self):
        await self.prepare()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.deps.close()

    @property
    def gateway(self) -> ChainGateway:
        return self.deps.gateway

    # ---- commands ----

    async def cmd_networks(self, args):
        for n in self.gateway.available_networks():
            print(f'{n.key:10} chain_id={n.chain_id:<6} {n.name:18} endpoints={len(n.endpoints)}')

    async def cmd_tokens(self, args):
        for key, t in self.gateway.all_tokens(args.network).items():
            mark = '*' if t.is_custom else ' '
            print(f'{mark} {key:12} {t.address} decimals={t.decimals}')

    async def cmd_validate(self, args):
        result = await self.gateway.validate_token(args.address, args.network)
        if result.is_valid:
            print(f'{result.symbol} "{result.name}" decimals={result.decimals} supply={result.total_supply}')
        else:
            print(f'Invalid token {result.address}: {result.reason}')

    async def cmd_balances(self, args):
        snapshot = await self.gateway.all_balances(args.address, args.network)
        for b in snapshot.balances:
            suffix = f'  (error: {b.error})' if b.error else ''
            print(f'{b.symbol:8} {b.formatted_balance}{suffix}')

    async def cmd_history(self, args):
        records = await self.gateway.history(args.address, args.network, limit=args.limit)
        for r in records:
            print(f'#{r.block_number} {r.direction:8} {r.value_native:>24} '
                  f'{short_address(r.from_address)} -> {short_address(r.to_address)} {r.status} fee={r.fee_raw}')

    async def cmd_quote(self, args):
        q = await self.gateway.swap_quote(args.src, args.dst, args.amount, args.decimals, args.network)
        print(f'{q.amount_raw} -> {q.output_amount_raw} via {q.route}, gas ~{q.estimated_gas}')

    async def run_command(self, args):
        handler = getattr(self, f'cmd_{args.command}')
        try:
            await handler(args)
        except WalletGatewayError as e:
            self.logger.error(f'{args.command} failed: {type(e).__name__}: {e}')
            return 1
        return 0


def arg_parser():
    parser = argparse.ArgumentParser(description='EVM wallet gateway (read-only commands)')
    parser.add_argument('--config', type=str, default=None, help='Path to config.yaml')
    parser.add_argument('--network', type=str, default=None, help='Network key (ethereum, optimism, ...)')
    parser.add_argument('--log-level', type=str, default=None, help='Overrides logs.level')
    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('networks', help='List supported networks')
    sub.add_parser('tokens', help='List known and custom tokens')

    p = sub.add_parser('validate', help='Validate an ERC-20 contract')
    p.add_argument('address')

    p = sub.add_parser('balances', help='Show all balances of an address')
    p.add_argument('address')

    p = sub.add_parser('history', help='Show recent transactions of an address')
    p.add_argument('address')
    p.add_argument('--limit', type=int, default=20)

    p = sub.add_parser('quote', help='Ask the aggregator for a swap quote')
    p.add_argument('src', help='Token address, zero address for the native coin')
    p.add_argument('dst')
    p.add_argument('amount')
    p.add_argument('--decimals', type=int, default=18)
    return parser


async def main():
    args = arg_parser().parse_args()
    async with App(config_name=args.config, log_level=args.log_level) as app:
        return await app.run_command(args)


def run():
    raise SystemExit(asyncio.run(main()))


if __name__ == '__main__':
    run()
