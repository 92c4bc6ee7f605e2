"""Default action routes for the bundled agents"""

from core.routing import ActionRoute

DEFAULT_ROUTES = (
    # Removal
    ActionRoute("removal.strategy", ("removal.strategy",), "removal-agent", "select-strategy"),
    ActionRoute("removal.execute", ("removal.execute", "removal.process"), "removal-agent", "execute-removal"),
    ActionRoute("removal.verify", ("removal.verify",), "removal-agent", "verify-removal"),
    ActionRoute("removal.batch", ("removal.batch", "removal.process-batch"), "removal-agent", "batch-process"),
    # Verification
    ActionRoute("verification.monitor", ("verification.monitor",), "verification-agent", "monitor-reappearance"),
    ActionRoute("verification.proof", ("verification.proof",), "verification-agent", "collect-proof"),
    ActionRoute("verification.tracking", ("verification.tracking",), "verification-agent", "long-term-tracking"),
    # Growth
    ActionRoute("growth.referrals", ("growth.referrals", "growth.referral"), "growth-agent", "optimize-referrals"),
    ActionRoute("growth.viral", ("growth.viral",), "growth-agent", "track-viral"),
    ActionRoute("growth.power-users", ("growth.power-users",), "growth-agent", "identify-power-users"),
    # Content
    ActionRoute("content.blog", ("content.blog", "content.generate-blog"), "content-agent", "generate-blog"),
    ActionRoute("content.help", ("content.help",), "content-agent", "generate-help"),
    ActionRoute("content.meta", ("content.meta", "content.generate-meta"), "content-agent", "generate-meta"),
    ActionRoute("content.seo", ("content.seo", "content.optimize-seo"), "content-agent", "optimize-seo"),
)
