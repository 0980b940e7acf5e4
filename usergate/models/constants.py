"""Constants for usergate.

This module centralizes defaults and user-facing messages used throughout the application.
"""


# Inactivity
DEFAULT_INACTIVE_THRESHOLD_DAYS = 30

# Passwords
MAX_PASSWORD_BYTES = 72

# Error messages returned to API clients
MSG_EMAIL_IN_USE = "Email já está em uso"
MSG_USER_NOT_FOUND = "Usuário não encontrado"
MSG_INVALID_CREDENTIALS = "Credenciais inválidas"
MSG_LIST_ADMIN_ONLY = "Apenas administradores podem listar todos os usuários"
MSG_UPDATE_OWN_ONLY = "Você só pode atualizar seus próprios dados"
MSG_ROLE_CHANGE_FORBIDDEN = "Você não pode alterar seu próprio papel"
MSG_ROLE_ASSIGN_ADMIN_ONLY = "Apenas administradores podem atribuir papéis"
MSG_DELETE_ADMIN_ONLY = "Apenas administradores podem excluir usuários"
MSG_DELETE_SELF = "Você não pode excluir sua própria conta"
MSG_VIEW_OWN_ONLY = "Você só pode ver seus próprios dados"
MSG_EXTERNAL_PROFILE_INVALID = "Perfil do provedor de identidade inválido"
MSG_ACCOUNT_CONFLICT = "Email ou identidade externa já está em uso"
MSG_ADMIN_ONLY = "Acesso restrito a administradores"
