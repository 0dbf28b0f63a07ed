# core/constants.py
USER_TYPE_CHOICES = (
    ('store', 'Store'),             # Posts gigs and resolves applications
    ('worker', 'Worker'),           # Applies to, starts and completes gigs
    ('admin', 'Admin'),
    ('super_admin', 'Super Admin'),
    ('verifier', 'Verifier'),
)

GIG_CATEGORY_CHOICES = (
    ('retail', 'Retail'),
    ('delivery', 'Delivery'),
    ('warehouse', 'Warehouse'),
    ('customer-service', 'Customer Service'),
    ('other', 'Other'),
)

GIG_STATUS_OPEN = 'open'
GIG_STATUS_ASSIGNED = 'assigned'
GIG_STATUS_IN_PROGRESS = 'in-progress'
GIG_STATUS_COMPLETED = 'completed'
GIG_STATUS_CANCELLED = 'cancelled'

GIG_STATUS_CHOICES = (
    (GIG_STATUS_OPEN, 'Open'),                # Initial state, accepting applications
    (GIG_STATUS_ASSIGNED, 'Assigned'),        # An application was accepted
    (GIG_STATUS_IN_PROGRESS, 'In Progress'),  # Assigned worker started the gig
    (GIG_STATUS_COMPLETED, 'Completed'),      # Worker finished, payment recorded
    (GIG_STATUS_CANCELLED, 'Cancelled'),      # Store withdrew the gig
)

GIG_ACTIVE_STATUSES = (GIG_STATUS_OPEN, GIG_STATUS_ASSIGNED, GIG_STATUS_IN_PROGRESS)
GIG_CANCELLABLE_STATUSES = (GIG_STATUS_OPEN, GIG_STATUS_ASSIGNED)

GIG_PAYMENT_STATUS_CHOICES = (
    ('pending', 'Pending'),
    ('paid', 'Paid'),
    ('failed', 'Failed'),
)

APPLICATION_STATUS_PENDING = 'pending'
APPLICATION_STATUS_ACCEPTED = 'accepted'
APPLICATION_STATUS_REJECTED = 'rejected'

GIG_APPLICATION_STATUS_CHOICES = (
    (APPLICATION_STATUS_PENDING, 'Pending'),    # Worker applied, awaiting store response
    (APPLICATION_STATUS_ACCEPTED, 'Accepted'),  # Store accepted worker's application
    (APPLICATION_STATUS_REJECTED, 'Rejected'),  # Store rejected it, or another was accepted
)

APPLICATION_ACTION_CHOICES = (
    ('accept', 'Accept'),
    ('reject', 'Reject'),
)

PAYMENT_STATUS_CHOICES = (
    ('pending', 'Pending'),
    ('processing', 'Processing'),
    ('completed', 'Completed'),
    ('failed', 'Failed'),
    ('refunded', 'Refunded'),
)

PAYMENT_METHOD_CHOICES = (
    ('bank_transfer', 'Bank Transfer'),
    ('upi', 'UPI'),
    ('wallet', 'Wallet'),
)

NOTIFICATION_TYPE_CHOICES = (
    ('gig_assigned', 'Gig Assigned'),
    ('gig_completed', 'Gig Completed'),
    ('gig_cancelled', 'Gig Cancelled'),
    ('payment_received', 'Payment Received'),
    ('application_received', 'Application Received'),
    ('application_accepted', 'Application Accepted'),
    ('application_rejected', 'Application Rejected'),
    ('system', 'System'),
)

GIG_SORT_FIELDS = (
    'created_at', 'start_time', 'end_time', 'hourly_rate', 'total_amount', 'views', 'title',
)
