"""登录页端到端验证: 打开登录页、填写凭据、提交并确认进入 secure 区域"""
