"""EventBridge schedule management for the import run."""
import json
import logging
from typing import Optional

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

SCHEDULE_EXPRESSIONS = {
    'hourly': 'rate(1 hour)',
    'twicedaily': 'rate(12 hours)',
    'daily': 'rate(1 day)',
    'weekly': 'rate(7 days)',
}

TARGET_ID = 'import-events'


class ImportScheduler:
    """Keeps one EventBridge rule invoking the import function."""

    def __init__(self, rule_name: str, function_arn: str, events_client=None):
        """
        Initialize the scheduler.

        Args:
            rule_name: Name of the EventBridge rule
            function_arn: ARN of the Lambda function the rule targets
            events_client: Optional boto3 EventBridge client
        """
        self.rule_name = rule_name
        self.function_arn = function_arn
        self.events = events_client or boto3.client('events')

    def schedule(self, frequency: str) -> str:
        """
        Create or replace the rule for a frequency.

        Returns:
            Rule ARN

        Raises:
            ValueError: If the frequency is not supported
        """
        if frequency not in SCHEDULE_EXPRESSIONS:
            raise ValueError(f"Unsupported schedule frequency: {frequency}")

        response = self.events.put_rule(
            Name=self.rule_name,
            ScheduleExpression=SCHEDULE_EXPRESSIONS[frequency],
            State='ENABLED',
            Description=f"Import tech events ({frequency})"
        )
        self.events.put_targets(
            Rule=self.rule_name,
            Targets=[{
                'Id': TARGET_ID,
                'Arn': self.function_arn,
                'Input': json.dumps({'action': 'import'})
            }]
        )

        logger.info(f"Scheduled import {frequency}", extra={'rule_name': self.rule_name})
        return response['RuleArn']

    def unschedule(self) -> bool:
        """
        Remove the rule and its targets.

        Returns:
            True if a rule was removed, False if none existed
        """
        try:
            self.events.remove_targets(Rule=self.rule_name, Ids=[TARGET_ID])
            self.events.delete_rule(Name=self.rule_name)
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'ResourceNotFoundException':
                return False
            logger.error(f"Error removing schedule {self.rule_name}: {e}")
            raise

        logger.info(f"Unscheduled import rule {self.rule_name}")
        return True

    def current_expression(self) -> Optional[str]:
        try:
            return self.events.describe_rule(Name=self.rule_name).get('ScheduleExpression')
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'ResourceNotFoundException':
                return None
            raise

    def reschedule(self, old_frequency: str, new_frequency: str) -> bool:
        """
        Move the import to a new frequency.

        The old rule is removed before the new one is created. Nothing
        happens when the frequency is unchanged.

        Returns:
            True if the schedule changed
        """
        if old_frequency == new_frequency:
            return False

        if new_frequency not in SCHEDULE_EXPRESSIONS:
            raise ValueError(f"Unsupported schedule frequency: {new_frequency}")

        self.unschedule()
        self.schedule(new_frequency)

        logger.info(f"Import rescheduled: frequency changed from {old_frequency} to {new_frequency}")
        return True
