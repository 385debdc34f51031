# social_backend/core/cli.py
import click
from flask import current_app
from flask.cli import AppGroup

# settings/rewardRule 을 쓰는 유일한 경로입니다. 일반 API로는 노출하지 않습니다.
reward_rule_cli = AppGroup('reward-rule', help="팔로워 마일스톤 보상 규칙 관리 (관리자 전용)")

@reward_rule_cli.command('show')
def show_reward_rule():
    """현재 적용 중인 보상 규칙을 출력합니다."""
    rule = current_app.services['rewards'].get_reward_rule()
    click.echo(f"followerThreshold={rule.follower_threshold} rewardAmount={rule.reward_amount}")

@reward_rule_cli.command('set')
@click.option('--threshold', type=int, required=True, help="보상 지급 팔로워 수")
@click.option('--amount', type=int, required=True, help="보상 금액")
def set_reward_rule(threshold: int, amount: int):
    """보상 규칙을 저장합니다. 이미 임계값을 넘은 사용자는 다음 팔로워가 생길 때 지급됩니다."""
    try:
        rule = current_app.services['rewards'].set_reward_rule(threshold, amount)
    except ValueError as e:
        raise click.BadParameter(str(e))
    click.echo(f"saved followerThreshold={rule.follower_threshold} rewardAmount={rule.reward_amount}")
