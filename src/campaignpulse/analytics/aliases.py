"""Field-name tables used to read metrics out of unknown payload shapes.

Keys are canonical ``AnalyticsRecord`` field names. Order inside each tuple is
lookup order.
"""

from __future__ import annotations

JSON_ALIASES: dict[str, tuple[str, ...]] = {
    "sent": (
        "sentCount",
        "sent",
        "totalSent",
        "emailsSent",
        "recipientsSent",
        "sentTotal",
        "totalRecipients",
        "recipientCount",
        "audienceSize",
        "processedCount",
        "successCount",
        "success",
        "successful",
        "totalSuccessful",
        "processed",
        "processedTotal",
        "recipientsProcessed",
        "emailsProcessed",
    ),
    "delivered": (
        "deliveredCount",
        "delivered",
        "totalDelivered",
        "emailsDelivered",
        "deliveredTotal",
        "deliveryCount",
        "successfulDeliveries",
        "successfullyDelivered",
        "accepted",
        "acceptedCount",
        "totalAccepted",
        "deliveredSuccessful",
    ),
    "opened": (
        "openedCount",
        "opened",
        "openCount",
        "opens",
        "totalOpened",
        "totalOpen",
        "uniqueOpen",
        "uniqueOpened",
        "uniqueOpens",
        "openedUnique",
        "read",
        "reads",
        "readCount",
        "totalRead",
        "uniqueRead",
        "uniqueReads",
    ),
    "clicked": (
        "clickedCount",
        "clicked",
        "clickCount",
        "clicks",
        "totalClicked",
        "totalClick",
        "uniqueClick",
        "uniqueClicked",
        "uniqueClicks",
        "clickedUnique",
        "linkClickCount",
        "linkClicks",
        "totalLinkClicks",
        "uniqueLinkClicks",
    ),
    "replied": (
        "repliedCount",
        "replies",
        "replyCount",
        "totalReplied",
        "replyTotal",
        "responses",
        "responsesCount",
        "responseCount",
    ),
    "bounced": (
        "bouncedCount",
        "bounced",
        "bounceCount",
        "totalBounced",
        "bounceTotal",
        "hardBounceCount",
        "softBounceCount",
        "hardBounced",
        "softBounced",
    ),
    "failed": (
        "failedCount",
        "failed",
        "failureCount",
        "totalFailed",
        "failedTotal",
        "errors",
        "errorCount",
        "dropped",
        "droppedCount",
        "rejected",
        "rejectedCount",
        "skipped",
        "skippedCount",
        "spam",
        "spamCount",
    ),
    "unsubscribed": (
        "unsubscribedCount",
        "unsubscribed",
        "unsubscribeCount",
        "totalUnsubscribed",
        "optOutCount",
        "optouts",
        "optOut",
        "optedOut",
        "optedOutCount",
        "unsubscribes",
    ),
    "open_rate": ("openRate", "openedRate", "uniqueOpenRate", "openPercentage", "openedPercentage"),
    "click_rate": (
        "clickRate",
        "clickedRate",
        "uniqueClickRate",
        "clickThroughRate",
        "ctr",
        "clickPercentage",
        "clickedPercentage",
    ),
    "reply_rate": ("replyRate", "repliedRate", "replyPercentage", "repliedPercentage"),
}

# Shorter lists for row-level reads on campaign list payloads.
ROW_ALIASES: dict[str, tuple[str, ...]] = {
    "sent": ("sentCount", "sent", "totalSent", "emailsSent", "processedCount", "success"),
    "delivered": ("deliveredCount", "delivered", "totalDelivered", "emailsDelivered", "accepted"),
    "opened": ("openedCount", "opened", "openCount", "opens", "totalOpened", "readCount"),
    "clicked": ("clickedCount", "clicked", "clickCount", "clicks", "totalClicked", "linkClickCount"),
    "replied": ("repliedCount", "replies", "replyCount", "totalReplied", "responsesCount"),
    "bounced": (
        "bouncedCount",
        "bounced",
        "bounceCount",
        "totalBounced",
        "hardBounceCount",
        "softBounceCount",
    ),
    "failed": ("failedCount", "failed", "failureCount", "totalFailed", "errorCount", "droppedCount"),
    "unsubscribed": (
        "unsubscribedCount",
        "unsubscribed",
        "unsubscribeCount",
        "totalUnsubscribed",
        "optOutCount",
    ),
    "open_rate": ("openRate", "openedRate", "openPercentage", "openedPercentage"),
    "click_rate": ("clickRate", "clickedRate", "clickPercentage", "clickedPercentage"),
    "reply_rate": ("replyRate", "repliedRate", "replyPercentage", "repliedPercentage"),
}

# `"key": value` / `key: value` / `key=value` in raw text bodies.
TEXT_ALIASES: dict[str, tuple[str, ...]] = {
    "sent": ("sentCount", "totalSent", "emailsSent", "processedCount", "successCount"),
    "delivered": (
        "deliveredCount",
        "totalDelivered",
        "emailsDelivered",
        "deliveryCount",
        "acceptedCount",
    ),
    "opened": ("openedCount", "openCount", "totalOpened", "uniqueOpen", "readCount"),
    "clicked": ("clickedCount", "clickCount", "totalClicked", "uniqueClick", "linkClickCount"),
    "replied": ("repliedCount", "replyCount", "totalReplied", "responsesCount"),
    "bounced": (
        "bouncedCount",
        "bounceCount",
        "totalBounced",
        "hardBounceCount",
        "softBounceCount",
    ),
    "failed": (
        "failedCount",
        "failureCount",
        "totalFailed",
        "errorCount",
        "droppedCount",
        "rejectedCount",
        "skippedCount",
        "spamCount",
    ),
    "unsubscribed": (
        "unsubscribedCount",
        "unsubscribeCount",
        "totalUnsubscribed",
        "optOutCount",
        "optedOutCount",
    ),
    "open_rate": ("openRate", "openedRate", "uniqueOpenRate", "openPercentage"),
    "click_rate": (
        "clickRate",
        "clickedRate",
        "uniqueClickRate",
        "clickThroughRate",
        "ctr",
        "clickPercentage",
    ),
    "reply_rate": ("replyRate", "repliedRate", "replyPercentage"),
}

# Natural-language report labels ("opened (123)", "click rate 4.5%").
TEXT_LABELS: dict[str, tuple[str, ...]] = {
    "opened": ("opened", "opens", "unique opens"),
    "clicked": ("clicked", "clicks", "unique clicks"),
    "replied": ("replied", "replies", "responses"),
    "unsubscribed": ("unsubscribed", "opt outs", "opt-outs"),
    "bounced": ("bounced", "bounces"),
    "open_rate": ("open rate",),
    "click_rate": ("click rate", "ctr"),
    "reply_rate": ("reply rate",),
}

# Bucket rows: {status|type|...: label, count|total|...: number}
BUCKET_LABEL_KEYS = ("status", "type", "event", "name", "label", "metric", "key")
BUCKET_VALUE_KEYS = ("count", "total", "value", "qty", "number", "amount")

# First match wins. Complaint/spam labels are deliberately absent: this provider
# never reports them at bucket level, so they map to nothing.
BUCKET_LABEL_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("unsubscribe", "optout"), "unsubscribed"),
    (("bounce",), "bounced"),
    (("skip", "fail", "error"), "failed"),
    (("repl",), "replied"),
    (("click",), "clicked"),
    (("open", "read"), "opened"),
    (("deliver", "accept"), "delivered"),
    (("success", "sent", "processed"), "sent"),
)

CAMPAIGN_ID_KEYS = ("campaignId", "campaign_id", "emailId", "email_id")
SCHEDULE_ID_KEYS = ("scheduleId", "schedule_id", "emailScheduleId", "email_schedule_id")
ROW_SCHEDULE_KEYS = ("scheduleId", "schedule_id", "emailScheduleId", "id", "_id")
SELF_ID_KEYS = (
    "id",
    "_id",
    "scheduleId",
    "schedule_id",
    "emailScheduleId",
    "campaignId",
    "campaign_id",
    "emailId",
    "email_id",
)
NAME_KEYS = ("name", "title", "campaignName", "campaign_name", "subject", "emailTitle")
STATUS_KEYS = ("status", "state", "campaignStatus", "campaign_status", "scheduleStatus")
CREATED_KEYS = (
    "createdAt",
    "created_at",
    "dateCreated",
    "date_created",
    "dateAdded",
    "publishAt",
    "publishedAt",
    "createdOn",
)
UPDATED_KEYS = ("updatedAt", "updated_at", "dateUpdated", "date_updated", "lastUpdatedAt", "updatedOn")
SCHEDULED_KEYS = (
    "scheduledAt",
    "scheduled_at",
    "scheduleAt",
    "dateScheduled",
    "scheduledFor",
    "sendAt",
    "nextProcessingOn",
    "nextExecution",
)
SENT_AT_KEYS = ("sentAt", "sent_at", "dateSent", "completedAt", "completed_at", "sentOn")
ROW_TIMESTAMP_KEYS = (
    "createdAt",
    "created_at",
    "dateCreated",
    "updatedAt",
    "updated_at",
    "scheduledAt",
    "scheduled_at",
    "sentAt",
    "sendAt",
    "scheduledFor",
)

WORKFLOW_ID_KEYS = ("id", "_id", "workflowId", "workflow_id")
WORKFLOW_NAME_KEYS = ("name", "title", "workflowName", "workflow_name")
WORKFLOW_STATUS_KEYS = ("status", "state")
WORKFLOW_CREATED_KEYS = ("createdAt", "created_at", "dateCreated", "date_created")
WORKFLOW_UPDATED_KEYS = ("updatedAt", "updated_at", "dateUpdated", "date_updated")

# Nested objects on a campaign row that may carry its metrics.
METRIC_CONTAINERS = ("campaign", "email", "schedule", "stats", "metrics", "analytics", "summary", "report")
