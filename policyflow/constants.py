DEFAULT_PRODUCT = "ParcelInsurance"
TASKS_STORAGE_KEY = "workflow_tasks"
TASK_ID_PREFIX = "wf"
DEFAULT_CONFIG_FILE = "policyflow.yaml"
